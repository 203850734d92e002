"""Coloured terminal output for user-facing messages."""

from colorama import Fore, Style, init

# Initialize colorama for Windows compatibility
init(autoreset=True)


def _emit(color: str, message: str) -> None:
    print(f"{color}{message}{Style.RESET_ALL}")


def heading(message: str) -> None:
    _emit(Fore.BLUE, message)


def success(message: str) -> None:
    _emit(Fore.GREEN, message)


def hint(message: str) -> None:
    _emit(Fore.YELLOW, message)


def warning(message: str) -> None:
    _emit(Fore.RED, message)


def plain(message: str = '') -> None:
    print(message)
