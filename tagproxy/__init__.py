"""tagproxy - Messages / chat-completions front end for a plain-text driver API.

Tool use is carried through the text-only upstream as inline tags:
requests are flattened with `<tool_call>` / `<tool_result>` blocks and the
reply's `<tool_call>` blocks are turned back into structured calls.

Example:
    >>> from tagproxy.main import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8081)
"""

__version__ = "0.1.0"
