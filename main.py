from pathlib import Path

from rich.pretty import pprint

from easycli import build_schema

if __name__ == '__main__':
    pprint(build_schema(Path(__file__).parent / "example"))
