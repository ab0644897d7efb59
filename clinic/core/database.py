import logging
from decimal import Decimal

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient
from clinic.core.config import MONGODB_URL, DATABASE_NAME

logger = logging.getLogger(__name__)


class DecimalCodec(TypeCodec):
    """Store money as Decimal128 and read it back as Decimal."""
    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value):
        return Decimal128(value)

    def transform_bson(self, value):
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(tz_aware=True, type_registry=TypeRegistry([DecimalCodec()]))


class MongoDB:
    client: AsyncIOMotorClient = None
    db = None

mongodb = MongoDB()

async def connect_to_mongo():
    # Version-conditional writes must not be replayed by the driver
    mongodb.client = AsyncIOMotorClient(MONGODB_URL, retryReads=True, retryWrites=False)
    mongodb.db = mongodb.client.get_database(DATABASE_NAME, codec_options=CODEC_OPTIONS)

    await mongodb.client.admin.command("ping")
    logger.info("MongoDB connected")

async def close_mongo_connection():
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("MongoDB disconnected")
