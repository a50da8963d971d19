"""WTForms used to validate flat JSON payloads at the API boundary."""
from rebath.exceptions import ValidationError


def validated(form_class, **kwargs):
    """
    Instantiate a form from the current request and validate it.

    Flask-WTF reads the JSON body when the request is JSON. Field errors
    are returned in the ``errors`` payload of the ``ValidationError``.
    """
    form = form_class(**kwargs)
    if not form.validate():
        first_field, messages = next(iter(form.errors.items()))
        raise ValidationError(f"{first_field}: {messages[0]}", payload={'errors': form.errors})
    return form
