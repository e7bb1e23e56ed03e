"""Mint a signed consent-confirmation link for a wallet address.

Uses SECRET_KEY and PUBLIC_URL from the environment (or .env file), so the
link is accepted by a server running with the same settings.

Usage:
    python -m scripts.consent_link 0xAbC0000000000000000000000000000000000001

    # Open the page it points to:
    curl "$(python -m scripts.consent_link 0xAbC...)"
"""

import sys

from frame_optin.core.security import build_consent_url


def main() -> None:
    if len(sys.argv) != 2 or not sys.argv[1].strip():
        print("usage: python -m scripts.consent_link <address>", file=sys.stderr)
        sys.exit(1)

    print(build_consent_url(sys.argv[1].strip()), end="")


if __name__ == "__main__":
    main()
