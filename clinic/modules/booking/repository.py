from typing import List, Optional

from clinic.core.database import mongodb
from clinic.modules.booking.models import CancellationRecord, RescheduleRecord


class BookingRepository:

        async def add_cancellation(self, record: CancellationRecord):
              return await mongodb.db.cancel_refunds.insert_one(record.model_dump())

        async def find_cancellation_by_key(self, session_id: str, idempotency_key: str) -> Optional[dict]:
              return await mongodb.db.cancel_refunds.find_one(
                {"session_id": session_id, "idempotency_key": idempotency_key},
                {"_id": 0})

        async def add_reschedule(self, record: RescheduleRecord):
              return await mongodb.db.session_reschedules.insert_one(record.model_dump())

        async def find_reschedule_history(self, session_id: str) -> List[dict]:
              return await mongodb.db.session_reschedules.find(
                {"session_id": session_id},
                {"_id": 0}
            ).sort("created_at", -1).to_list(100)
