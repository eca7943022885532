import sys

from ec2_bootstrap.cli import main

sys.exit(main())
