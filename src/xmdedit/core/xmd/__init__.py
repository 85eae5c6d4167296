"""XMD block grammars: attributes, fences, figures, tables, the scanner and the serializer."""
