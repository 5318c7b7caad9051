"""
Create a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Site Admin" admin@acme.io 'S3cure-pass' admin
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.errors import ConflictError
from app.schemas.user import UserCreate
from app.services.users import create_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an account without going through the API.")
    parser.add_argument("name", help="Display name (2-50 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="At least 6 chars with upper, lower and digit")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    try:
        data = UserCreate(
            name=args.name, email=args.email, password=args.password, role=args.role
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"{field}: {err['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = create_user(db, data)
    except ConflictError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.email}' with role '{user.role}' (id {user.id}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
