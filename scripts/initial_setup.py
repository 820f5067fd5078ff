"""Create the data directory and apply database migrations."""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fitflex.database import run_migrations
from fitflex.logging_config import configure_logging


def main() -> None:
    configure_logging()
    data_dir = Path("data")
    data_dir.mkdir(exist_ok=True)
    run_migrations()
    print("Database initialised at", data_dir)


if __name__ == "__main__":
    main()
