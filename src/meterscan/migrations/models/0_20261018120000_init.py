from tortoise import BaseDBAsyncClient


async def upgrade(db: BaseDBAsyncClient) -> str:
    return """
        CREATE TABLE IF NOT EXISTS "consumer" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "external_id" VARCHAR(255) NOT NULL UNIQUE
);
COMMENT ON TABLE "consumer" IS 'A billed consumer, identified by an opaque external id.';
CREATE TABLE IF NOT EXISTS "reading" (
    "id" UUID NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "value" BIGINT NOT NULL,
    "taken_at" TIMESTAMPTZ NOT NULL,
    "source" VARCHAR(6) NOT NULL DEFAULT 'photo',
    "consumer_id" UUID NOT NULL REFERENCES "consumer" ("id") ON DELETE CASCADE
);
COMMENT ON COLUMN "reading"."source" IS 'PHOTO: photo\nMANUAL: manual';
COMMENT ON TABLE "reading" IS 'A recorded meter reading for a consumer.';
CREATE TABLE IF NOT EXISTS "aerich" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "version" VARCHAR(255) NOT NULL,
    "app" VARCHAR(100) NOT NULL,
    "content" JSONB NOT NULL
);"""


async def downgrade(db: BaseDBAsyncClient) -> str:
    return """
        """
