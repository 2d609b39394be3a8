"""Allow running as python -m dapm_provision."""

from .main import main

main()
