from dataclasses import dataclass
from datetime import datetime

from markupsafe import escape


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    value: object = None


def _parse_date(val: str):
    return datetime.strptime(val, "%Y-%m-%d").date()


def _to_id(val):
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        return None


class FormData:
    """Sanitizes submitted form fields and collects field-level errors.

    Each rule reads one raw field, stores the cleaned value in ``values``
    and appends a ``FieldError`` for every violation, in call order.
    """

    def __init__(self, raw=None):
        self.raw = raw if raw is not None else {}
        self.values = {}
        self.errors = []

    @property
    def valid(self) -> bool:
        return not self.errors

    def error(self, field, message):
        self.errors.append(FieldError(field, message, self.raw.get(field)))

    def _text(self, field) -> str:
        value = self.raw.get(field)
        if value is None:
            return ''
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ''
        return str(value).strip()

    def required(self, field, message, *, min_length=1, max_length=None,
                 alphanumeric=None, length_message=None):
        value = self._text(field)
        escaped = str(escape(value))
        if not value:
            self.error(field, message)
        elif len(escaped) < min_length or (max_length is not None and len(escaped) > max_length):
            self.error(field, length_message or message)
        elif alphanumeric and not (value.isascii() and value.isalnum()):
            self.error(field, alphanumeric)
        self.values[field] = escaped
        return escaped

    def optional_date(self, field, message):
        value = self._text(field)
        parsed = None
        if value:
            try:
                parsed = _parse_date(value)
            except ValueError:
                self.error(field, message)
        self.values[field] = parsed
        return parsed

    def reference(self, field, message):
        text = self._text(field)
        ident = _to_id(text) if text else None
        if ident is None:
            self.error(field, message)
        self.values[field] = ident
        return ident

    def choice(self, field, choices, message, default=None):
        value = self._text(field) or default
        if value not in choices:
            self.error(field, message)
        self.values[field] = value
        return value

    def many(self, field, message=None):
        """Normalize a field that may be absent, a scalar or a list into a list of ids.

        With a ``message``, any value that is not an id is reported as an error.
        """
        if hasattr(self.raw, 'getlist'):
            raw = self.raw.getlist(field)
        else:
            raw = self.raw.get(field)
            if raw is None:
                raw = []
            elif not isinstance(raw, (list, tuple, set)):
                raw = [raw]
        idents = []
        rejected = False
        for item in raw:
            ident = _to_id(item)
            if ident is None:
                if message and not rejected:
                    self.error(field, message)
                rejected = True
            elif ident not in idents:
                idents.append(ident)
        self.values[field] = idents
        return idents
