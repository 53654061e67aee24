"""
Middleware layer.

`pipeline` holds the ordered step chain and its Starlette host, `exchange`
the per-request state shared between steps, and `steps` the example steps.
`correlation` and `security` are ordinary Starlette middleware wrapped
around the pipeline.
"""
