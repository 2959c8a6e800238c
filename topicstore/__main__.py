"""Allow running as ``python -m topicstore``."""
import sys

from .cli import main

sys.exit(main())
