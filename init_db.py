# init_db.py
import asyncio

from app.db.sql import engine, init_db


async def init_models():
    await init_db(drop=True)
    await engine.dispose()
    print("Database schema recreated successfully!")


if __name__ == "__main__":
    asyncio.run(init_models())
