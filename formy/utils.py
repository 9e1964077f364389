import warnings


class FormyWarning(UserWarning, RuntimeWarning):
    pass


def config_warnings(on: bool = False):
    if on:
        warnings.simplefilter("default", category=FormyWarning)
    else:
        warnings.simplefilter("ignore", category=FormyWarning)


def escape_quotes(raw: str) -> str:
    # two passes, backslashes first so the quote escapes are not doubled
    return raw.replace("\\", "\\\\").replace('"', '\\"')
