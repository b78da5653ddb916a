from sqlstitch.compiler.compiled_query import CompiledQuery

__all__ = [
    "CompiledQuery",
]
