"""Built-in rule kinds.

This module registers every built-in rule with the RuleCatalog. Call
register_builtin_rules() before building forms; it is idempotent.

Categories:
- Presence: required
- Text: length, range, email, emails, regexp, url, alphabet, alphanumeric,
  digits, number, float
- Cross-field: compare
- Dates: date, datecompare, age
- Application: custom
- Uploads: filesize, filetype, upload, image

Apart from "required", every rule passes on an empty value.
"""

import re
from datetime import date
from typing import Any

from fieldguard.validation.dates import DateFormat
from fieldguard.validation.errors import ConfigurationError
from fieldguard.validation.registry import CustomRuleRegistry
from fieldguard.validation.rules.catalog import RuleCatalog, RuleContext, RuleSpec
from fieldguard.validation.types import TIME_COMPONENTS, FieldKind

TEXT = frozenset({FieldKind.TEXT})
FILE = frozenset({FieldKind.FILE})
ALL_KINDS = frozenset(FieldKind)

MAX_EMAIL_LENGTH = 254

EMAIL_PATTERN = re.compile(
    r"[a-z0-9_\-+~^{}][a-z0-9_\-+~^{}.]{0,63}@[a-z0-9_\-+~^{}.]{1,255}\.[a-z0-9]{2,}",
    re.IGNORECASE,
)

IMAGE_MIME_PATTERN = re.compile(r"image/(gif|jpeg|png|pjpeg)", re.IGNORECASE)

DATE_OPERATORS = (">", ">=", "<", "<=")


def register_builtin_rules() -> None:
    """Register all built-in rules with the RuleCatalog."""
    _register_presence_rules()
    _register_text_rules()
    _register_cross_field_rules()
    _register_date_rules()
    _register_custom_rules()
    _register_upload_rules()


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    """True for None, False, whitespace-only strings and empty collections."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def normalized_length(value: str) -> int:
    """Length with every line ending counted as CRLF, as servers receive it."""
    return len(re.sub(r"\r\n|\r|\n", "\r\n", value))


def is_valid_email(address: str) -> bool:
    if ".." in address or len(address) > MAX_EMAIL_LENGTH:
        return False
    return EMAIL_PATTERN.fullmatch(address) is not None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _character_class(extra: Any) -> str:
    if not extra:
        return ""
    return "".join(r"\s" if char.isspace() else re.escape(char) for char in str(extra))


def _js_number_string(number: float) -> str:
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)


# -----------------------------------------------------------------------------
# Presence
# -----------------------------------------------------------------------------


def _required(ctx: RuleContext) -> bool:
    value = ctx.value
    kind = ctx.field.kind

    if kind == FieldKind.FILE:
        return not is_blank(value) or ctx.field.id in ctx.state.uploads

    if kind == FieldKind.COMPOSITE_TIME:
        if isinstance(value, dict):
            components = [value[c] for c in TIME_COMPONENTS if c in value]
            return bool(components) and not any(is_blank(c) for c in components)
        return not is_blank(value)

    if kind == FieldKind.CHOICE_SINGLE:
        if is_blank(value):
            return False
        if ctx.field.other and value == "other":
            return not is_blank(ctx.state.values.get(f"{ctx.field.id}_other"))
        return True

    if kind in (FieldKind.BOOLEAN_GROUP, FieldKind.CHOICE_MULTI):
        if isinstance(value, (list, tuple, set)):
            return any(not is_blank(v) for v in value)
        return not is_blank(value)

    return not is_blank(value)


def _register_presence_rules() -> None:
    RuleCatalog.register(RuleSpec("required", ALL_KINDS, _required))


# -----------------------------------------------------------------------------
# Text
# -----------------------------------------------------------------------------


def _length(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value == "":
        return True
    length = normalized_length(value)
    minimum = ctx.param(0)
    maximum = ctx.param(1)
    if minimum is not None and length < int(minimum):
        return False
    if maximum is not None and int(maximum) > 0 and length > int(maximum):
        return False
    return True


def _range(ctx: RuleContext) -> bool:
    value = _text(ctx.value).strip()
    if value == "":
        return True

    bounds = ctx.params
    if bounds and isinstance(bounds[0], (list, tuple)):
        bounds = tuple(bounds[0])
    minimum = float(bounds[0]) if len(bounds) > 0 and bounds[0] is not None else 0
    maximum = float(bounds[1]) if len(bounds) > 1 and bounds[1] is not None else 0

    # Only plain decimal notation that round-trips unchanged is accepted
    if not re.fullmatch(r"-?(\d+\.?\d*|\.\d+)", value):
        return False
    number = float(value)
    if _js_number_string(number) != value:
        return False

    return (minimum == 0 or number >= minimum) and (maximum == 0 or number <= maximum)


def _email(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value.strip() == "":
        return True
    return is_valid_email(value)


def _emails(ctx: RuleContext) -> bool:
    for address in _text(ctx.value).split(","):
        address = address.strip()
        if address and not is_valid_email(address):
            return False
    return True


def _regexp(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value.strip() == "":
        return True
    try:
        return re.search(str(ctx.param(0, "")), value) is not None
    except re.error as exc:
        raise ConfigurationError(
            f'Invalid regular expression for field "{ctx.field.id}": {exc}'
        ) from exc


def _url(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value.strip() == "":
        return True
    scheme = r"(https?://)" if ctx.param(0) is True else r"(https?://)?"
    return re.match(scheme + r"[^\s.]+\..{2,}", value, re.IGNORECASE) is not None


def _charset_rule(base: str):
    def predicate(ctx: RuleContext) -> bool:
        value = _text(ctx.value)
        if value.strip() == "":
            return True
        pattern = "[" + base + _character_class(ctx.param(0)) + "]+"
        return re.fullmatch(pattern, value, re.IGNORECASE) is not None

    return predicate


def _number(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value.strip() == "":
        return True
    if value.strip() == "-" or value.count("-") > 1 or value.find("-") > 0:
        return False
    pattern = r"[0-9\-" + _character_class(ctx.param(0)) + "]+"
    return re.fullmatch(pattern, value, re.IGNORECASE) is not None


def _float(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value.strip() == "":
        return True
    if value.strip() in ("-", "."):
        return False
    if value.count("-") > 1 or value.count(".") > 1 or value.find("-") > 0:
        return False
    pattern = r"[0-9\-." + _character_class(ctx.param(0)) + "]+"
    return re.fullmatch(pattern, value, re.IGNORECASE) is not None


def _register_text_rules() -> None:
    RuleCatalog.register(RuleSpec("length", TEXT, _length))
    RuleCatalog.register(RuleSpec("range", TEXT, _range))
    RuleCatalog.register(RuleSpec("email", TEXT, _email))
    RuleCatalog.register(RuleSpec("emails", TEXT, _emails))
    RuleCatalog.register(RuleSpec("regexp", TEXT, _regexp))
    RuleCatalog.register(RuleSpec("url", TEXT, _url))
    RuleCatalog.register(RuleSpec("alphabet", TEXT, _charset_rule("a-z")))
    RuleCatalog.register(RuleSpec("alphanumeric", TEXT, _charset_rule("a-z0-9")))
    RuleCatalog.register(RuleSpec("digits", TEXT, _charset_rule("0-9")))
    RuleCatalog.register(RuleSpec("number", TEXT, _number))
    RuleCatalog.register(RuleSpec("float", TEXT, _float))


# -----------------------------------------------------------------------------
# Cross-field
# -----------------------------------------------------------------------------


def _compare(ctx: RuleContext) -> bool:
    other = ctx.lookup(str(ctx.param(0, "")))
    return _text(ctx.value) == _text(ctx.state.value_of(other))


def _register_cross_field_rules() -> None:
    RuleCatalog.register(RuleSpec("compare", TEXT, _compare))


# -----------------------------------------------------------------------------
# Dates
# -----------------------------------------------------------------------------


def _date(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    field_id = ctx.field.id
    if value.strip() == "":
        ctx.state.timestamps.pop(field_id, None)
        return True

    format_text = ctx.param(0) or ctx.field.format
    if not format_text:
        raise ConfigurationError(f'Field "{field_id}" has a date rule but no date format')

    date_format = DateFormat(
        format=str(format_text),
        day_names=ctx.field.day_names,
        month_names=ctx.field.month_names,
    )
    timestamp = date_format.timestamp(value)
    if timestamp is None:
        ctx.state.timestamps.pop(field_id, None)
        return False

    ctx.state.timestamps[field_id] = timestamp
    return True


def _datecompare(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    if value.strip() == "":
        return True

    other_id = str(ctx.param(0, ""))
    operator = ctx.param(1)
    ctx.lookup(other_id)
    if operator not in DATE_OPERATORS:
        raise ConfigurationError(
            f'Field "{ctx.field.id}" uses unknown datecompare operator "{operator}"'
        )

    if ctx.validate_other(other_id) is not True:
        return False

    mine = ctx.state.timestamps.get(ctx.field.id)
    theirs = ctx.state.timestamps.get(other_id)
    if mine is None or theirs is None:
        return False

    if operator == ">":
        return mine > theirs
    if operator == ">=":
        return mine >= theirs
    if operator == "<":
        return mine < theirs
    return mine <= theirs


def _age(ctx: RuleContext) -> bool:
    value = _text(ctx.value)
    timestamp = ctx.state.timestamps.get(ctx.field.id)
    if value.strip() == "" or timestamp is None:
        return True

    bounds = ctx.params
    if bounds and isinstance(bounds[0], (list, tuple)):
        bounds = tuple(bounds[0])
    minimum = int(bounds[0]) if len(bounds) > 0 and bounds[0] is not None else 0
    maximum = int(bounds[1]) if len(bounds) > 1 and bounds[1] is not None else 0

    born = date.fromordinal(date(1970, 1, 1).toordinal() + timestamp // 86400)
    today = date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1

    return (minimum <= 0 or age >= minimum) and (maximum <= 0 or age <= maximum)


def _register_date_rules() -> None:
    RuleCatalog.register(RuleSpec("date", TEXT, _date))
    RuleCatalog.register(RuleSpec("datecompare", TEXT, _datecompare))
    RuleCatalog.register(RuleSpec("age", TEXT, _age))


# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------


def _custom(ctx: RuleContext) -> bool:
    name = str(ctx.param(0, ""))
    predicate = CustomRuleRegistry.get(name)
    return bool(predicate(ctx.value, *ctx.params[1:]))


def _register_custom_rules() -> None:
    RuleCatalog.register(RuleSpec("custom", ALL_KINDS, _custom))


# -----------------------------------------------------------------------------
# Uploads
# -----------------------------------------------------------------------------


def _filesize(ctx: RuleContext) -> bool:
    upload = ctx.state.uploads.get(ctx.field.id)
    if upload is None:
        return True
    return upload.error_code == 0 and upload.byte_size <= int(ctx.param(0, 0))


def _filetype(ctx: RuleContext) -> bool:
    upload = ctx.state.uploads.get(ctx.field.id)
    if upload is None:
        return True

    allowed = ctx.param(0, "")
    if isinstance(allowed, str):
        allowed = allowed.split(",")
    allowed_types = {str(extension).strip().lower() for extension in allowed}

    matching = ctx.mimes.extensions_for(upload.mime_type)
    return any(extension in allowed_types for extension in matching)


def _upload(ctx: RuleContext) -> bool:
    upload = ctx.state.uploads.get(ctx.field.id)
    if upload is None:
        return True
    return upload.error_code == 0


def _image(ctx: RuleContext) -> bool:
    upload = ctx.state.uploads.get(ctx.field.id)
    if upload is None:
        return True
    return IMAGE_MIME_PATTERN.search(upload.mime_type) is not None


def _register_upload_rules() -> None:
    RuleCatalog.register(RuleSpec("filesize", FILE, _filesize))
    RuleCatalog.register(RuleSpec("filetype", FILE, _filetype, needs_mimes=True))
    RuleCatalog.register(RuleSpec("upload", FILE, _upload))
    RuleCatalog.register(RuleSpec("image", FILE, _image))
