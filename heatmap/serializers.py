from __future__ import annotations

from typing import ClassVar

from rest_framework import serializers

from .render.compositor import COMPOSITE_MODES


class RenderRequestSerializer(serializers.Serializer):
    """Optional render parameters sent alongside the two uploads."""

    width: ClassVar[serializers.IntegerField] = serializers.IntegerField(
        required=False, min_value=1
    )
    height: ClassVar[serializers.IntegerField] = serializers.IntegerField(
        required=False, min_value=1
    )
    mode: ClassVar[serializers.ChoiceField] = serializers.ChoiceField(
        choices=COMPOSITE_MODES, required=False
    )


class RenderUploadSchemaSerializer(RenderRequestSerializer):
    """OpenAPI description of the multipart body."""

    map: ClassVar[serializers.FileField] = serializers.FileField(
        help_text="Base map image (JPEG or PNG)."
    )
    zip: ClassVar[serializers.FileField] = serializers.FileField(
        help_text="ZIP archive holding one .grid sample file."
    )
