"""SEO metadata value object shared by products and categories."""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String, Text

from storefront.domain import storefront

_URL_PATTERN = re.compile(r"^https?://\S+$")


@storefront.value_object
class SeoMetadata:
    """Search engine and social sharing metadata."""

    meta_title: String(max_length=70)
    meta_description: String(max_length=160)
    meta_keywords: String(max_length=255)
    canonical_url: String(max_length=500)
    og_title: String(max_length=95)
    og_description: String(max_length=200)
    og_image: String(max_length=500)
    twitter_title: String(max_length=70)
    twitter_description: String(max_length=200)
    schema_markup: Text()

    @invariant.post
    def urls_must_be_absolute(self):
        for field_name in ("canonical_url", "og_image"):
            value = getattr(self, field_name)
            if value and not _URL_PATTERN.match(value):
                raise ValidationError({field_name: ["Must be an absolute http(s) URL"]})
