from recipes.api.routes import router

__all__ = ["router"]
