"""Allow running the package with python -m hubspoke (same as the hubspoke console script)."""
from hubspoke.main import main
import sys
sys.exit(main())
