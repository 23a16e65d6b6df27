"""
Request payload validation for the catalog JSON API.
"""
import uuid

from django import forms

from .conf import catalog_settings


class UUIDListField(forms.Field):
    """A JSON list of ids, returned as de-duplicated UUIDs in input order."""

    default_error_messages = {
        "invalid_list": "Enter a list of ids.",
        "invalid_id": "%(value)s is not a valid id.",
    }

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError(self.error_messages["invalid_list"], code="invalid_list")

        ids = []
        for item in value:
            try:
                ids.append(uuid.UUID(str(item)))
            except ValueError:
                raise forms.ValidationError(
                    self.error_messages["invalid_id"],
                    code="invalid_id",
                    params={"value": item},
                ) from None
        return list(dict.fromkeys(ids))


class JSONForm(forms.Form):
    """
    Form fed from a JSON object.

    ``json_keys`` maps form field names to payload keys; unlisted fields use
    their own name.
    """

    json_keys = {}

    @classmethod
    def from_json(cls, payload):
        return cls(data={
            name: payload.get(cls.json_keys.get(name, name)) for name in cls.base_fields
        })

    def json_errors(self):
        """Form errors keyed by payload key."""
        return {
            self.json_keys.get(name, name): list(errors)
            for name, errors in self.errors.items()
        }


class PostForm(JSONForm):
    """Body of a post create or update."""

    json_keys = {
        "cover_image_key": "coverImageKey",
        "category_ids": "categoryIds",
    }

    title = forms.CharField(max_length=255)
    content = forms.CharField(strip=False)
    cover_image_key = forms.CharField(max_length=255, required=False)
    category_ids = UUIDListField(required=False)

    def clean_content(self):
        content = self.cleaned_data["content"]
        if not content.strip():
            raise forms.ValidationError("Content cannot be blank.", code="blank")
        return content


class CategoryForm(JSONForm):
    """Body of a category create."""

    name = forms.CharField(
        min_length=catalog_settings.CATEGORY_NAME_MIN_LENGTH,
        max_length=catalog_settings.CATEGORY_NAME_MAX_LENGTH,
        strip=False,
    )


class CoverImageForm(forms.Form):
    """Multipart body of a cover image upload."""

    file = forms.FileField()
