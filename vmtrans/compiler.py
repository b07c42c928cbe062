"""
Main VM translator.

Coordinates reading VM units, parsing, code generation and writing the
assembled Hack program.
"""

import sys
from typing import List, Optional, Tuple
from pathlib import Path

from .parser import Parser
from .codegen import CodeGenerator


class VMTranslator:
    """Main VM translator class."""

    def __init__(self, verbose: bool = False, entry: str = "Sys.init",
                 bootstrap: Optional[bool] = None, comments: bool = True,
                 static_scope: str = "unit"):
        self.verbose = verbose
        self.entry = entry
        self.bootstrap = bootstrap  # None: decided by input kind (directory -> bootstrap)
        self.comments = comments  # Precede each block with "// <command>"
        self.static_scope = static_scope
        self.warnings: List[str] = []

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[vmtrans] {message}", file=sys.stderr)

    def warn(self, message: str):
        """Record a translation warning."""
        self.warnings.append(message)
        if self.verbose:
            print(f"[vmtrans] Warning: {message}", file=sys.stderr)

    def get_warnings(self) -> List[str]:
        """Get all warnings generated during translation."""
        return self.warnings.copy()

    def _new_generator(self) -> CodeGenerator:
        return CodeGenerator(static_scope=self.static_scope)

    def _emit_block(self, lines: List[str], header: str, instructions: List[str]):
        if self.comments:
            lines.append(f"// {header}")
        lines.extend(instructions)
        lines.append("")

    def _translate_unit(self, source: str, unit_name: str, generator: CodeGenerator,
                        lines: List[str]) -> Parser:
        """Translate one unit, appending to lines. Returns the exhausted parser."""
        self.log(f"Translating {unit_name}...")
        generator.set_unit(unit_name)
        parser = Parser(source, unit_name)
        count = 0
        for command in parser:
            try:
                instructions = generator.translate(command)
            except ValueError as e:
                raise ValueError(f"{unit_name}:{command.line}:{command.column}: {e}") from e
            self._emit_block(lines, str(command), instructions)
            count += 1

        if count == 0:
            self.warn(f"{unit_name}: no commands")
        self.log(f"  {count} commands")
        return parser

    def translate_string(self, source: str, unit_name: str = "Main") -> str:
        """
        Translate a single unit of VM source. No bootstrap is emitted.

        Args:
            source: VM source text
            unit_name: Unit name used for static symbols and labels

        Returns:
            Hack assembly text
        """
        lines: List[str] = []
        self._translate_unit(source, unit_name, self._new_generator(), lines)
        return "\n".join(lines) + "\n"

    def translate_units(self, units: List[Tuple[str, str]], bootstrap: bool = True) -> str:
        """
        Translate an ordered sequence of (unit_name, source) pairs into one program.

        When bootstrapping, the entry function must be defined by one of the
        units, otherwise the whole run fails and nothing is returned.
        """
        generator = self._new_generator()
        lines: List[str] = []

        if bootstrap:
            self.log(f"Bootstrap: SP=256, call {self.entry}")
            self._emit_block(lines, f"bootstrap: call {self.entry}", generator.bootstrap(self.entry))

        defined = {}
        for unit_name, source in units:
            parser = self._translate_unit(source, unit_name, generator, lines)
            for name in sorted(parser.defined_functions):
                if name in defined:
                    self.warn(f"function {name} defined in both {defined[name]} and {unit_name}")
                else:
                    defined[name] = unit_name

        if bootstrap and self.entry not in defined:
            raise ValueError(f"entry function {self.entry} is not defined by any unit")

        return "\n".join(lines) + "\n"

    def collect_units(self, input_path: str) -> List[Tuple[str, str]]:
        """
        Read the units of a program.

        A .vm file yields one unit; a directory yields every .vm file in it,
        in sorted order. Unit names are the file stems.
        """
        path = Path(input_path)
        if path.is_dir():
            files = sorted(p for p in path.iterdir() if p.is_file() and p.suffix == '.vm')
            if not files:
                raise FileNotFoundError(f"No .vm files found in directory: {input_path}")
        elif path.is_file():
            if path.suffix != '.vm':
                raise ValueError(f"Input must be a .vm file or a directory: {input_path}")
            files = [path]
        else:
            raise FileNotFoundError(f"Input not found: {input_path}")

        units = []
        for file_path in files:
            self.log(f"Reading {file_path}...")
            with open(file_path, 'r', encoding='utf-8') as f:
                units.append((file_path.stem, f.read()))
        return units

    def translate_path(self, input_path: str) -> str:
        """Translate a .vm file or a directory of .vm files to Hack assembly text."""
        units = self.collect_units(input_path)
        bootstrap = self.bootstrap
        if bootstrap is None:
            bootstrap = Path(input_path).is_dir()
        return self.translate_units(units, bootstrap=bootstrap)

    @staticmethod
    def default_output_path(input_path: str) -> str:
        """Foo.vm -> Foo.asm; Dir/ -> Dir/Dir.asm"""
        path = Path(input_path)
        if path.is_dir():
            return str(path / (path.resolve().name + '.asm'))
        return str(path.with_suffix('.asm'))

    def translate_file(self, input_path: str, output_path: Optional[str] = None) -> bool:
        """
        Translate a VM program and write the assembly file.

        The output is written only after every unit translated successfully.

        Args:
            input_path: Path to a .vm file or a directory of .vm files
            output_path: Path to the .asm output (derived from input if None)

        Returns:
            True if translation succeeded, False otherwise
        """
        if output_path is None:
            output_path = self.default_output_path(input_path)

        try:
            assembly = self.translate_path(input_path)

            self.log(f"Writing {output_path}...")
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(assembly)

            self.log(f"Translation successful: {assembly.count(chr(10))} lines")
            return True

        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return False
        except SyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return False
        except ValueError as e:
            print(f"Translation error: {e}", file=sys.stderr)
            if self.verbose:
                import traceback
                traceback.print_exc()
            return False
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return False


def main(argv: Optional[List[str]] = None):
    """Command-line interface for the translator."""
    import argparse

    parser = argparse.ArgumentParser(
        description='VM Translator - Translate VM code to Hack assembly'
    )
    parser.add_argument('input', help='Input .vm file or directory of .vm files')
    parser.add_argument('-o', '--output', help='Output .asm file')
    parser.add_argument('--entry', default='Sys.init',
                       help='Entry function called by the bootstrap (default: Sys.init)')
    bootstrap = parser.add_mutually_exclusive_group()
    bootstrap.add_argument('--bootstrap', dest='bootstrap', action='store_true', default=None,
                       help='Emit the bootstrap even for a single file')
    bootstrap.add_argument('--no-bootstrap', dest='bootstrap', action='store_false',
                       help='Never emit the bootstrap (default for single files)')
    parser.add_argument('--no-comments', action='store_true',
                       help='Do not precede each block with the source command')
    parser.add_argument('--static-scope', choices=['unit', 'global'], default='unit',
                       help='Scope of static variables (default: unit)')
    parser.add_argument('--verbose', action='store_true',
                       help='Verbose output')

    args = parser.parse_args(argv)

    translator = VMTranslator(verbose=args.verbose, entry=args.entry,
                              bootstrap=args.bootstrap, comments=not args.no_comments,
                              static_scope=args.static_scope)
    success = translator.translate_file(args.input, args.output)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
