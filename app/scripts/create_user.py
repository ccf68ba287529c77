"""
Create an administrator account (e.g. the first SUPER_ADMIN). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [role] [--firstname F] [--lastname L]
Example:
  python -m app.scripts.create_user root@example.com your-secure-password SUPER_ADMIN
"""
import argparse
import sys

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.core.access_policy import Role
from app.core.database import SessionLocal
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from app.models.user import User


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an administrator (bypasses the API).")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.SUPER_ADMIN.value,
        choices=[r.value for r in Role],
    )
    parser.add_argument("--firstname", default="")
    parser.add_argument("--lastname", default="")
    args = parser.parse_args()

    try:
        email = TypeAdapter(EmailStr).validate_python(args.email.strip())
    except ValidationError:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        db.add(
            User(
                email=email,
                password_hash=hash_password(args.password),
                role=args.role,
                firstname=args.firstname.strip(),
                lastname=args.lastname.strip(),
            )
        )
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
