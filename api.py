import asyncio
import uvicorn
from sqlmodel import SQLModel
from config import ApplicationConfig
from src.api.app import create_app
from src.depends import engine

app = create_app(ApplicationConfig)


async def create_tables():
    import src.domain  # noqa: F401  registers tables on SQLModel.metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


if __name__ == "__main__":
    if ApplicationConfig.DB_CREATE_TABLES:
        asyncio.run(create_tables())
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        reload=True,
        log_level=ApplicationConfig.LOG_LEVEL.lower(),
    )
