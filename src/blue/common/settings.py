from pathlib import Path
import tomllib


class DebugSettings:
    enabled: bool           # Gates breakpoints and the register trace
    print_registers: bool   # Dump registers after every cycle
    manual_input: bool      # Caller completes INP/OUT handshakes

    FIELDS = ('enabled', 'print_registers', 'manual_input')

    def __init__(self):
        self.enabled = True
        self.print_registers = False
        self.manual_input = True

    def update(
        self,
        enabled: bool | None = None,
        print_registers: bool | None = None,
        manual_input: bool | None = None
    ):
        if enabled is not None:
            self.enabled = enabled

        if print_registers is not None:
            self.print_registers = print_registers

        if manual_input is not None:
            self.manual_input = manual_input

        return self

    @classmethod
    def from_toml(cls, path: Path) -> 'DebugSettings':
        config = tomllib.loads(path.read_text())
        debug = config.get('debug', {})

        unknown = set(debug) - set(cls.FIELDS)
        if unknown:
            raise ValueError(f'Unknown debug settings: {", ".join(sorted(unknown))}')

        for key, value in debug.items():
            if not isinstance(value, bool):
                raise ValueError(f'Debug setting {key} must be a boolean')

        return cls().update(**debug)

    def __repr__(self):
        fields = ', '.join(f'{k}={getattr(self, k)}' for k in self.FIELDS)
        return f'DebugSettings({fields})'
