"""
Console prompts shared by the settings prompt, the scan confirmation and the
end-of-run deletion offer.
"""


def ask_yes_no(question: str, default: bool = False) -> bool:
    """
    Asks a yes/no question on stdin.

    An empty answer, or no stdin at all, returns `default`.
    """
    hint = "[Y/n]" if default else "[y/N]"
    try:
        answer = input(f"{question} {hint} ").strip().lower()
    except EOFError:
        return default
    if not answer:
        return default
    return answer in ("y", "yes")
