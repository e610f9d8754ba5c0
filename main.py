import sys

from accounts.manager import UserStore
from accounts.storage import JSONStorage
from cli import SessionController
from config import Settings
from logging_setup import configure_logging


def main() -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_file, settings.level)

    store = UserStore(JSONStorage(settings.data_file)).load()
    controller = SessionController(store, exit_keyword=settings.exit_keyword)
    return controller.run()


if __name__ == "__main__":
    sys.exit(main())
