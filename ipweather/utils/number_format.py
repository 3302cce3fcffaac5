import logging
import math

logger = logging.getLogger(__name__)


def format_fixed(value: object, places: int = 2) -> str:
    """Render a free-form numeric string with a fixed number of decimals.

    Unparseable or non-finite input ("nan", "inf", "1e400") renders as zero
    rather than failing the caller, since these fields are cosmetic.

    Args:
        value: Upstream value, usually a string such as "123.4567".
        places: Number of decimal places.

    Returns:
        str: e.g. "123.46", or "0.00" when value is not a finite number.
    """
    try:
        number = float(str(value).strip())
    except ValueError:
        number = math.nan
    if not math.isfinite(number):
        logger.debug("number_format.unparseable", extra={"raw_value": str(value)[:32]})
        number = 0.0
    return f"{number:.{places}f}"
