"""Seed reps and map pins, convert one pin, and print dev tokens.

Run with ``python -m scripts.seed_data`` from the project root.
"""

from __future__ import annotations

import random
from decimal import Decimal

from faker import Faker

from app.auth.jwt import create_access_token
from app.core.config import get_config
from app.core.dependencies import get_workflow
import app.database.db as db_module
from app.database.init_db import init_db
from app.models import CommissionLevel, Pin, PinStatus, Rep, UserRole
from app.utils.ids import new_record_id

fake = Faker()

REPS = [
    ("Dana Whitfield", "dana@ridgeline.example", CommissionLevel.MANAGER, None),
    ("Luis Ortega", "luis@ridgeline.example", CommissionLevel.SENIOR, None),
    ("Priya Shah", "priya@ridgeline.example", CommissionLevel.JUNIOR, Decimal("7.50")),
]


def _seed_reps(db) -> list[Rep]:
    reps = []
    for full_name, email, level, percent in REPS:
        rep = db.query(Rep).filter(Rep.email == email).first()
        if rep is None:
            rep = Rep(
                id=new_record_id(),
                full_name=full_name,
                email=email,
                commission_level=level.value,
                default_commission_percent=percent,
            )
            db.add(rep)
        reps.append(rep)
    db.commit()
    return reps


def _seed_pins(db, reps: list[Rep], count: int = 10) -> list[Pin]:
    pins = []
    for _ in range(count):
        pin = Pin(
            id=new_record_id(),
            rep_id=random.choice(reps).id,
            assigned_closer_id=random.choice((None, reps[0].id)),
            homeowner_name=fake.name(),
            homeowner_phone=fake.phone_number(),
            homeowner_email=fake.email(),
            address=fake.street_address(),
            city=fake.city(),
            state=fake.state_abbr(),
            zip_code=fake.zipcode(),
            latitude=float(fake.latitude()),
            longitude=float(fake.longitude()),
            status=PinStatus.LEAD.value,
            inspection_images=[f"https://files.ridgeline.example/inspections/{fake.uuid4()}.jpg"],
        )
        db.add(pin)
        pins.append(pin)
    db.commit()
    return pins


def seed_data() -> None:
    init_db()
    cfg = get_config()
    with db_module.session_scope() as db:
        reps = _seed_reps(db)
        pins = _seed_pins(db, reps)
        print(f"Seeded {len(reps)} reps and {len(pins)} pins.")

        result = get_workflow(db).convert_pin(pins[0].id, UserRole.ADMIN)
        if result.ok:
            print(f"Converted pin {pins[0].id} into deal {result.deal.id}.")
        else:
            print(f"Pin conversion rejected: {result.rejection.message}")

        for role, subject in ((UserRole.ADMIN, "dev-admin"), (UserRole.REP, reps[0].id), (UserRole.CREW, "dev-crew")):
            token = create_access_token(
                user_id=subject,
                role=role.value,
                secret=cfg.JWT_SECRET,
                permissions_version=cfg.JWT_PERMISSIONS_VERSION,
                ttl_minutes=cfg.JWT_ACCESS_TTL_MINUTES,
                rep_id=subject if role == UserRole.REP else None,
            )
            print(f"{role.value} token: {token}")


if __name__ == "__main__":
    seed_data()
