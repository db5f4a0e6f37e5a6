from app.db.session import SessionLocal
from app.db.base import Availability
from app.utils.availability import Weekday


def fix_rule_keys():
    """
    Rewrite stored rule documents under canonical weekday keys.

    Older documents were keyed by Italian labels ("Lunedì"), some of them
    double-encoded ("LunedÃ¬"). Ranges of labels resolving to the same day are
    concatenated in document order; unknown labels are reported and kept.
    """
    db = SessionLocal()
    try:
        for availability in db.query(Availability).all():
            print(f"{availability.title}: {list((availability.rules or {}).keys())}")

            fixed = {}
            for label, ranges in (availability.rules or {}).items():
                try:
                    key = Weekday.parse(label).value
                except ValueError:
                    print(f"  Unknown day label {label!r}, left as is")
                    key = label
                fixed.setdefault(key, []).extend(ranges or [])

            if fixed != availability.rules:
                availability.rules = fixed
                print(f"  -> {list(fixed.keys())}")

        db.commit()
        print("Updated rule keys.")
    finally:
        db.close()

if __name__ == "__main__":
    fix_rule_keys()
