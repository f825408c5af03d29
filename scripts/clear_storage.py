"""Clear the chapter cache and/or the persisted reading state."""
import argparse
import sys
import os

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import get_settings
from app.services.cache_service import ContentCache
from app.services.key_value_store import create_store
from app.services.persistence_sync import PersistenceSync


def clear_storage(clear_cache: bool, clear_state: bool) -> int:
    """Clear the requested namespaces and return how many cache entries were removed."""
    settings = get_settings()
    store = create_store(settings)

    removed = 0
    if clear_cache:
        cache = ContentCache(store, settings.cache_prefix, reserved_keys=(settings.stats_key, settings.plans_key))
        removed = cache.evict_all()
        print(f"✅ Removed {removed} cached chapters under '{settings.cache_prefix}'")

    if clear_state:
        PersistenceSync(store, settings).clear()
        print(f"✅ Removed persisted state ({settings.stats_key}, {settings.plans_key})")

    return removed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--cache", action="store_true", help="evict every cached chapter")
    parser.add_argument("--state", action="store_true", help="delete stored plans and stats")
    args = parser.parse_args()

    if not (args.cache or args.state):
        parser.print_usage()
        print("❌ Choose at least one of --cache or --state")
        sys.exit(1)

    clear_storage(clear_cache=args.cache, clear_state=args.state)
