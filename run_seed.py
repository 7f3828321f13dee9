import asyncio

from wallboard.core.config import get_settings
from wallboard.core.db import close_engine, create_schema, get_session_factory, init_engine
from wallboard.core.logging import configure_logging
from wallboard.infra.db.seed import seed_default_agents
from wallboard.infra.store import SqlAgentStore


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = init_engine(settings)
    try:
        if settings.db_auto_create:
            await create_schema(engine)
        store = SqlAgentStore(get_session_factory())
        created = await seed_default_agents(store, settings.status_workflow())
        print(f"Successfully loaded {created} agents !")
    finally:
        await close_engine(engine)


if __name__ == "__main__":
    asyncio.run(main())
