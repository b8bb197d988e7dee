"""Allow ``python -m pr_risk``."""

from pr_risk.cli import main

if __name__ == "__main__":
    main()
