"""
Dev utility: mint a session token for an email address.

Handy for calling the API with curl without going through GitHub:

    curl -H "Authorization: Bearer <token>" localhost:8000/shorten
"""

import argparse
from datetime import timedelta

from slinker.core.config import get_settings
from slinker.core.security import issue_session_token


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("email")
    parser.add_argument("--minutes", type=int, default=None, help="token lifetime (default: SESSION_TTL_MINUTES)")
    args = parser.parse_args()

    settings = get_settings()
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    token = issue_session_token(settings, args.email, expires_delta=expires)

    print(f"Session token for {args.email}:")
    print(token)


if __name__ == "__main__":
    main()
