"""Path resolution and template expansion over loosely-typed JSON values.

Paths are tokenized once into a PathExpression and walked key by key.
Resolution never raises: a miss comes back as a ResolutionResult with
an error message that callers render inline as a small warning.
"""
