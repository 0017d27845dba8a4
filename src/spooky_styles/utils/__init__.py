from spooky_styles.utils.validators import ValidationUtils

__all__ = ["ValidationUtils"]
