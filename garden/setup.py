def run():
    """
    Run before every entry point:
        fastapi server
        tests
    """
    from loguru import logger

    configure_logging()
    configure_models()

    logger.info('application setup complete ✅')


def configure_logging():
    from garden.common.logs import configure_logging as configure_loguru

    configure_loguru()


def configure_models():
    """
    When using declarative we need to run this for our entry points
    to have context on our models before tables are created or queried
    """
    from garden.common.model import import_model_modules

    import_model_modules()


def create_tables():
    """
    Creates any missing tables for the registered models. Existing tables
    are left untouched.
    """
    from loguru import logger

    from garden.common.model import BaseModel
    from garden.network.database.session import engine

    configure_models()
    BaseModel.metadata.create_all(bind=engine)
    logger.info('database tables ready')
