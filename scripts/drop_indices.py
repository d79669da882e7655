"""
Elasticsearch index drop script

Delete one index, or every non-reserved index, through Floe
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from floe import Floe, ReservedIndexError
from floe.core.storage import ElasticsearchBackend
from floe.utils import get_logger, is_reserved_index, setup_logging

logger = get_logger("scripts.drop_indices")


def print_header(text: str) -> None:
    """Print header"""
    print("\n" + "=" * 70)
    print(f"  {text}")
    print("=" * 70)


def print_success(text: str) -> None:
    """Print success message"""
    print(f"  ✓ {text}")


def print_info(text: str) -> None:
    """Print info message"""
    print(f"  • {text}")


def print_warning(text: str) -> None:
    """Print warning message"""
    print(f"  ⚠️  {text}")


def print_error(text: str) -> None:
    """Print error message"""
    print(f"  ✗ {text}")


async def drop_all(floe: Floe) -> bool:
    """
    Delete every non-reserved index

    Returns:
        bool: whether every deletion succeeded
    """
    print_header("Delete All Indices")

    names = await floe.backend.list_indices()
    targets = [name for name in names if not is_reserved_index(name, floe.reserved_index_prefix)]

    if not targets:
        print_info("No indices to delete")
        return True

    for name in targets:
        print_info(name)

    success = await floe.delete_all_indices()
    if success:
        print_success(f"Deleted {len(targets)} indices")
    else:
        print_warning("Some indices could not be deleted, please check logs")
    return success


async def drop_one(floe: Floe, name: str) -> bool:
    """Delete a single index"""
    print_header(f"Delete Index {name}")

    try:
        deleted = await floe.delete_index(name)
    except ReservedIndexError as e:
        print_error(str(e))
        return False

    if deleted:
        print_success(f"{name}: Deleted successfully")
    else:
        print_warning(f"{name}: Index does not exist")
    return deleted


async def main() -> None:
    """
    Main function
    """
    parser = argparse.ArgumentParser(description="Delete Elasticsearch indices")
    parser.add_argument("index", nargs="?", help="index to delete (omit with --all)")
    parser.add_argument("--all", action="store_true", help="delete every non-reserved index")
    parser.add_argument("--yes", action="store_true", help="skip confirmation")
    args = parser.parse_args()

    if not args.index and not args.all:
        parser.error("specify an index name or --all")

    setup_logging()
    floe = None

    try:
        print_header("Floe Elasticsearch Index Drop Tool")
        print_warning("Warning: All data in the deleted indices will be permanently lost!")

        if not args.yes:
            confirm = input("  Confirm to continue? (yes/no): ").strip().lower()
            if confirm != "yes":
                print_info("Operation cancelled")
                return

        backend = ElasticsearchBackend()
        if not await backend.ping():
            print_error("Elasticsearch connection failed, please check configuration")
            sys.exit(1)

        floe = Floe.from_settings(backend=backend)

        if args.all:
            success = await drop_all(floe)
        else:
            success = await drop_one(floe, args.index)

        print("=" * 70 + "\n")
        if not success:
            sys.exit(1)

    except Exception as e:
        logger.error(f"Index drop failed: {e}", exc_info=True)
        print_error(f"Index drop failed: {e}")
        sys.exit(1)

    finally:
        if floe:
            await floe.close()


if __name__ == "__main__":
    asyncio.run(main())
