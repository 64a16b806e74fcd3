"""
CLI entry point, when used as a module: `python -m kubefan`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kubefan").
"""
from kubefan import cli

if __name__ == '__main__':
    cli.main()
