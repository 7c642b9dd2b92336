"""Allow running as: python -m policy_coverage"""

from policy_coverage.main import index, run, serve
import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        serve()
    elif "--index" in sys.argv:
        args = [a for a in sys.argv[1:] if a != "--index"]
        index(args[0] if args else "")
    else:
        file_arg = sys.argv[1] if len(sys.argv) > 1 else ""
        run(file_arg)
