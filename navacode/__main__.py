"""CLI entry point for the Navacode interpreter.

Usage:
    python -m navacode [-v|-vv|-vvv] [--engine {descent,lark}] <program_file>
    python -m navacode --tokens <program_file>
    python -m navacode --check <program_file>
    python -m navacode --emit-ast <program_file>
    python -m navacode [-v...] --ast <ast_json_file>

Options:
  -v              Increase debug verbosity (can be repeated)
  --engine        Front end used to parse source files (default: descent)
  --tokens        Print the token stream of the given file
  --check         Lex, parse and resolve the given file without running it
  --emit-ast      Parse the given file and emit an AST JSON file
  --ast           Execute a previously emitted AST JSON file
  --show-globals  After a run, print every global binding

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. After a run the final value of the program
is printed unless it is unit.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast_json import ast_to_obj, program_from_obj
from .environment import Environment
from .errors import NavacodeError, ParseError
from .interpreter import ENGINES, Interpreter, call_with_deep_stack, parse_program, resolve_for
from .lexer import tokenize
from .types import UNIT, to_string

DEBUG_FILE = 'debug.txt'


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def execute(ast_program, args) -> None:
    interpreter = Interpreter(debug_level=args.v, debug_file=DEBUG_FILE if args.v else None)
    try:
        env = interpreter.global_env
        resolve_for(ast_program, env)
        value = call_with_deep_stack(interpreter.run, ast_program, env)
    finally:
        interpreter.close()
    if value is not UNIT:
        print(to_string(value))
    if args.show_globals:
        for name, bound in env.items():
            print(f"{name}: {to_string(bound)}")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Navacode language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--engine', choices=ENGINES, default='descent', help='parser front end to use')
    parser.add_argument('--show-globals', action='store_true', help='print global bindings after the run')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--tokens', metavar='NAVA_FILE', help='print the token stream of the given file')
    group.add_argument('--check', metavar='NAVA_FILE', help='lex, parse and resolve without running')
    group.add_argument('--emit-ast', metavar='NAVA_FILE', help='emit AST JSON for the given file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Navacode program file to execute')
    args = parser.parse_args(argv)

    try:
        # Token dump mode
        if args.tokens:
            for tok in tokenize(read_source(Path(args.tokens))):
                print(f"{tok.line}:{tok.column}\t{tok.kind}\t{tok.text!r}")
            return

        # Static check mode
        if args.check:
            ast_program = parse_program(read_source(Path(args.check)), args.engine)
            resolve_for(ast_program, Environment())
            print('ok')
            return

        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            ast_program = parse_program(read_source(program_file), args.engine)
            obj = ast_to_obj(ast_program)
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(obj, out, ensure_ascii=False, indent=2)
            print(str(out_path))
            return

        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            with open(ast_path, 'r', encoding='utf-8') as f:
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    raise ParseError(f"invalid AST JSON: {e.msg}") from None
            execute(program_from_obj(data), args)
            return

        # Default: execute source file
        if not args.program:
            parser.error('missing program file; or use --tokens/--check/--emit-ast/--ast')
        execute(parse_program(read_source(Path(args.program)), args.engine), args)
    except NavacodeError as e:
        print(str(e.diagnostic), file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
