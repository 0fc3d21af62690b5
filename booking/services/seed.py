"""Demo users and appointments for local runs."""
from datetime import date, timedelta
from typing import List, Optional, Tuple
import logging
import random

from sqlalchemy.orm import Session

from ..core.exceptions import StorageError
from ..core.security import get_password_hash
from ..models.user import User
from ..repositories.appointment_repository import AppointmentRepository

logger = logging.getLogger(__name__)

FIRST_NAMES = [
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer", "Michael",
    "Linda", "William", "Elizabeth", "David", "Barbara", "Richard", "Susan",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller",
    "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez", "Wilson",
]

SEED_WINDOW_DAYS = 31


def parse_demo_users(entries: List[str]) -> List[Tuple[str, str]]:
    """Split ``username:password`` entries, skipping malformed ones."""
    users = []
    for entry in entries:
        username, sep, password = entry.partition(":")
        if not sep or not username or not password:
            logger.warning(f"Ignoring malformed demo user entry: {entry!r}")
            continue
        users.append((username, password))
    return users


def create_demo_users(db: Session, users: List[Tuple[str, str]]) -> List[User]:
    created = []
    for username, password in users:
        user = db.query(User).filter(User.username == username).first()
        if user:
            logger.info(f"User {username} already exists.")
        else:
            user = User(username=username, password_hash=get_password_hash(password))
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"Created user: {username}")
        created.append(user)
    return created


def random_upcoming_date(today: date, rng: random.Random) -> str:
    return (today + timedelta(days=rng.randrange(SEED_WINDOW_DAYS))).isoformat()


def generate_demo_appointments(
    db: Session,
    users: List[User],
    today: date,
    per_user: int = 20,
    rng: Optional[random.Random] = None,
) -> int:
    """Fill empty storage with appointments that respect all-day exclusivity.

    Every fourth appointment is all-day and gets a date nobody else uses;
    regular appointments avoid the all-day dates. Returns how many were made.
    """
    store = AppointmentRepository(db)
    if store.count() > 0:
        logger.info("Appointments already exist in the database.")
        return 0

    rng = rng or random.Random()
    generated = 0

    for user in users:
        created = 0
        used_dates = set()
        all_day_dates = set()
        # Keep at least one date free for regular appointments
        all_day_budget = SEED_WINDOW_DAYS - 1

        for i in range(per_user):
            is_all_day = i % 4 == 0 and len(all_day_dates) < all_day_budget

            candidate = random_upcoming_date(today, rng)
            if is_all_day:
                if len(used_dates) >= SEED_WINDOW_DAYS:
                    is_all_day = False
                else:
                    while candidate in used_dates:
                        candidate = random_upcoming_date(today, rng)
                    all_day_dates.add(candidate)
            if not is_all_day:
                while candidate in all_day_dates:
                    candidate = random_upcoming_date(today, rng)
            used_dates.add(candidate)

            try:
                store.insert(
                    owner_id=user.id,
                    date=candidate,
                    first_name=rng.choice(FIRST_NAMES),
                    last_name=rng.choice(LAST_NAMES),
                    all_day=is_all_day,
                )
            except StorageError as e:
                logger.error(f"Error inserting appointment: {e.message}")
                continue
            created += 1

        generated += created
        logger.info(f"Generated {created} appointments for user: {user.username}")

    return generated
