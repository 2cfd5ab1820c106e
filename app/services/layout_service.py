from app.models.category import Category
from app.models.profile import Profile


class LayoutService:
    """Data every page shell needs: who is signed in and the category navigation"""

    @staticmethod
    def navigation_categories(gateway):
        return gateway.select(
            Category,
            Category.parent_id.is_(None),
            Category.is_active.is_(True),
            order_by=(Category.sort_order, Category.name),
        )

    @staticmethod
    def load_layout(gateway) -> dict:
        principal = gateway.principal
        session = None
        if principal.is_authenticated:
            profile = gateway.session.get(Profile, principal.id)
            session = {
                "user_id": principal.id,
                "role": principal.role.value,
                "is_admin": principal.is_admin,
                "username": profile.username if profile else None,
                "setup_completed": profile.setup_completed if profile else False,
            }
        return {
            "session": session,
            "categories": [c.to_nav_dict() for c in LayoutService.navigation_categories(gateway)],
        }
