"""
Create a user (e.g. first admin or an instructor). Run from project root:
  python -m app.scripts.create_user EMAIL NAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com "Site Admin" your-secure-password admin
"""
import argparse
import sys

from app.core.config import configure_logging, settings
from app.core.database import database
from app.core.errors import AppError
from app.schemas.auth import ROLE_VALUES
from app.services.users import UserService
from app.services.validation import parse_create_user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a LearnLite user from the command line.")
    parser.add_argument("email", help="Email address (stored lowercase)")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("password", help="Password (at least 6 chars)")
    parser.add_argument("role", nargs="?", default="student", choices=list(ROLE_VALUES))
    args = parser.parse_args()
    configure_logging(settings.LOG_LEVEL)

    try:
        data = parse_create_user(
            {"email": args.email, "name": args.name, "password": args.password, "role": args.role}
        )
        user = UserService(database).register(data)
    except AppError as e:
        print(e.message, file=sys.stderr)
        return 1

    print(f"Created user '{user['email']}' (id={user['id']}) with role '{user['role']}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
