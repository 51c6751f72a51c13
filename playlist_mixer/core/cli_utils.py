from typing import Callable, Optional


def print_header(title: str) -> None:
    """Top-level section header."""
    print(f"\n=== {title} ===")


def print_info(message: str) -> None:
    """Neutral information (no icon, just slight indent)."""
    print(f"{message}")


def print_success(message: str) -> None:
    """Successful outcome."""
    print(f"✅ {message}")


def print_warning(message: str) -> None:
    """Warning / non-fatal problem."""
    print(f"⚠️  {message}")


def print_error(message: str) -> None:
    """Error / fatal problem."""
    print(f"❌ {message}")


def print_question(message: str) -> None:
    """Prompt for user input."""
    # Just a visual convention; ask() below does the actual read
    print(f"?  {message}", end="")


def ask(message: str, reader: Optional[Callable[[], str]] = None) -> str:
    """
    Print a question and return the stripped answer.

    An end-of-file on stdin is treated as an empty answer.
    """
    print_question(f"{message} ")
    try:
        return (reader or input)().strip()
    except EOFError:
        print()
        return ""
