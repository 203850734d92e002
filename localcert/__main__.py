import sys

from localcert.cli import main

if __name__ == '__main__':
    sys.exit(main())
