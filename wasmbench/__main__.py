import sys

from wasmbench.run_benchmark import main

if __name__ == "__main__":
    sys.exit(main())
