import os


def env_flag(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


# Engine defaults. The environment can opt into the alternatives.

# Non-greedy quantifiers are searched greedy-first unless this is set.
DEFAULT_HONOR_LAZY = env_flag("BKTRACE_HONOR_LAZY", False)

# "consume": lookaround groups match like ordinary groups and eat input.
# "assert": lookarounds are zero-width assertions.
LOOKAROUND_MODES = ("consume", "assert")
DEFAULT_LOOKAROUND = os.environ.get("BKTRACE_LOOKAROUND", "consume")

# Dot matches line terminators too unless this is turned off.
DEFAULT_DOT_ALL = env_flag("BKTRACE_DOT_ALL", True)

# Upper bound on node entries per build_trace call. Unset means unbounded.
_max_steps = os.environ.get("BKTRACE_MAX_STEPS", "")
DEFAULT_MAX_STEPS = int(_max_steps) if _max_steps else None

# Diagram output
DEFAULT_DIAGRAM_FORMAT = os.environ.get("BKTRACE_DIAGRAM_FORMAT", "png")
DEFAULT_RANKDIR = "LR"
HIGHLIGHT_COLOR = "orange"

NO_PATTERN_ERROR = "No regex pattern provided"
