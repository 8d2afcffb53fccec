from mirrorwalk.application.use_cases.resolve_streams import ResolveStreamsUseCase

__all__ = ["ResolveStreamsUseCase"]
