import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING
import os
from dotenv import load_dotenv

from jobfit.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "jobfit_db")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

# The client connects lazily, so importing this module never blocks
client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
db = client[DB_NAME]

# Collections
candidates_coll = db["candidates"]
assessments_coll = db["assessments"]
job_descriptions_coll = db["job_descriptions"]
evaluations_coll = db["evaluations"]


INDEXES = [
    (candidates_coll, [("id", ASCENDING)], True),
    (candidates_coll, [("position", ASCENDING)], False),
    (assessments_coll, [("candidate_id", ASCENDING), ("created_at", DESCENDING)], False),
    (job_descriptions_coll, [("id", ASCENDING)], True),
    (job_descriptions_coll, [("is_active", ASCENDING)], False),
    # one evaluation per (candidate, job description)
    (evaluations_coll, [("candidate_id", ASCENDING), ("job_description_id", ASCENDING)], True),
    (evaluations_coll, [("job_description_id", ASCENDING), ("ranking", ASCENDING)], False),
]


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    failures = 0
    for coll, keys, unique in INDEXES:
        fields = ", ".join(k for k, _ in keys)
        try:
            await coll.create_index(keys, unique=unique)
            logger.debug(f"Created {'unique ' if unique else ''}index on {coll.name}.({fields})")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug(f"Index on {coll.name}.({fields}) already exists")
            else:
                failures += 1
                logger.warning(f"Could not create index on {coll.name}.({fields}): {e}")

    if failures:
        logger.warning(f"Database index initialization finished with {failures} failures")
    else:
        logger.info("Database index initialization completed successfully")
    return failures
