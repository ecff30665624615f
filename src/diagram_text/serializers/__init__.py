from diagram_text.serializers.default import DefaultSerializer, serialize
from diagram_text.serializers.highlight import highlight_syntax

__all__ = ["DefaultSerializer", "highlight_syntax", "serialize"]
