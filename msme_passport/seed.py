"""Seed the chamber reference rows (primary and secondary affiliates)."""
from sqlalchemy.orm import Session
from msme_passport.models.affiliate import MainAffiliate, SecondaryAffiliate

MAIN_AFFILIATES = ["Malay Chambers", "Chinese Chambers", "Indian Chambers", "Others"]
SECONDARY_AFFILIATES = ["BEDB", "Dynamik Technologies"]


def seed_affiliates(db: Session) -> None:
    """Insert any chamber that is missing; existing rows are left alone."""
    existing_main = {name for (name,) in db.query(MainAffiliate.name).all()}
    for name in MAIN_AFFILIATES:
        if name not in existing_main:
            db.add(MainAffiliate(name=name))
    existing_secondary = {name for (name,) in db.query(SecondaryAffiliate.name).all()}
    for name in SECONDARY_AFFILIATES:
        if name not in existing_secondary:
            db.add(SecondaryAffiliate(name=name))
    db.commit()
