"""
Seed script for populating the policy registry with sample policies.
Run with: python data/seed_policies.py
"""
import sys
from pathlib import Path
from datetime import date

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db import Base, SessionLocal, engine
from app.db.models import Policy, CoverageStatus


SAMPLE_POLICIES = [
    {
        "policy_number": "HO-2025-000101",
        "holder_name": "Dana Whitfield",
        "effective_date": date(2025, 1, 1),
        "expiration_date": date(2027, 1, 1),
        "status": CoverageStatus.ACTIVE,
        "covered_loss_types": ["Fire", "Water Damage", "Theft", "Wind/Hail"],
        "coverage_limits": {"Dwelling": 350000, "Personal Property": 175000},
        "deductibles": {"All Perils": 1000, "Wind/Hail": 2500},
    },
    {
        "policy_number": "AU-2025-004417",
        "holder_name": "Marcus Oyelaran",
        "effective_date": date(2025, 6, 1),
        "expiration_date": date(2026, 12, 1),
        "status": CoverageStatus.ACTIVE,
        "covered_loss_types": ["Collision", "Comprehensive", "Liability"],
        "coverage_limits": {"Liability": 100000, "Collision": 40000},
        "deductibles": {"Collision": 500, "Comprehensive": 250},
    },
    {
        "policy_number": "HO-2022-000033",
        "holder_name": "Priya Natarajan",
        "effective_date": date(2022, 3, 15),
        "expiration_date": date(2023, 3, 15),
        "status": CoverageStatus.EXPIRED,
        "covered_loss_types": ["Fire", "Theft"],
        "coverage_limits": {"Dwelling": 220000},
        "deductibles": {"All Perils": 500},
    },
    {
        "policy_number": "CP-2025-009002",
        "holder_name": "Harbor Street Bakery LLC",
        "effective_date": date(2025, 9, 1),
        "expiration_date": date(2026, 9, 1),
        "status": CoverageStatus.SUSPENDED,
        "covered_loss_types": ["Fire", "Business Interruption", "Liability"],
        "coverage_limits": {"Building": 600000, "Business Interruption": 120000},
        "deductibles": {"All Perils": 5000},
    },
]


def seed_policies():
    """Seed the database with sample policies."""
    print("\n" + "=" * 60)
    print("SEEDING POLICY REGISTRY")
    print("=" * 60 + "\n")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        created = 0
        for policy_data in SAMPLE_POLICIES:
            policy_number = policy_data["policy_number"]

            existing = db.query(Policy).filter(Policy.policy_number == policy_number).first()
            if existing:
                print(f"  Skipping {policy_number} (already exists)")
                continue

            db.add(Policy(**policy_data))
            created += 1
            print(f"  Created {policy_number} ({policy_data['status'].value}) for {policy_data['holder_name']}")

        db.commit()
        print(f"\nDone. {created} policies created.")
    except Exception as e:
        db.rollback()
        print(f"\nError seeding policies: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_policies()
