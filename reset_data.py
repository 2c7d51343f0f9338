"""
reset_data.py
-------------
Utility script to clear all stored data (accounts, vehicles, rentals, settings)
from the configured database.

This script is designed for development and testing purposes.
It drops and recreates every table behind DATABASE_URL.

Usage:
    $ python reset_data.py

After running this script, you can repopulate sample data by executing:
    $ python seeds.py
"""

from car_rental.config import Config
from car_rental.models.store import Store


def main():
    """Drop and recreate every table of the configured database."""
    store = Store.configure(Config.DATABASE_URL)
    store.reset()

    print(f"Database {Config.DATABASE_URL} has been cleared.")
    print("Tip: Run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
