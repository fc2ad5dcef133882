import json
import sys

import atheris

with atheris.instrument_imports():
    from encore.assistant.actions import ALLOWED_ACTIONS, sanitize_action
    from encore.assistant.heuristics import interpret_heuristically
    from encore.assistant.interpreter import parse_model_output


def TestOneInput(data: bytes) -> None:
    """Fuzz the sanitizer, heuristics and model output recovery with arbitrary input."""
    text = data.decode("utf-8", errors="ignore")

    # Heuristics never raise and always yield an allowed action
    action = interpret_heuristically(text)
    assert action.action in ALLOWED_ACTIONS

    # Model output recovery never raises
    recovered = parse_model_output(text)
    if recovered is not None:
        assert recovered.action in ALLOWED_ACTIONS

    try:
        candidate = json.loads(text)
    except ValueError:
        return
    sanitized = sanitize_action(candidate)
    assert sanitized.action in ALLOWED_ACTIONS
    assert sanitize_action(sanitized) == sanitized


def main() -> None:
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
