import sys

from ec2exec.cli import main

sys.exit(main())
