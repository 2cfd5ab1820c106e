from app.enums import UserRole


class Principal:
    """The identity a request runs as.

    Built from the database row on every request; never from flags the
    client sends. ``service`` mirrors a service-role key and bypasses row
    policies.
    """

    def __init__(self, id=None, role=None, is_service=False):
        self.id = id
        self.role = UserRole(role) if role is not None else None
        self.is_service = is_service

    @classmethod
    def anonymous(cls):
        return cls()

    @classmethod
    def service(cls):
        return cls(is_service=True)

    @classmethod
    def from_user(cls, user):
        if user is None:
            return cls.anonymous()
        return cls(id=user.id, role=user.role)

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_moderator(self) -> bool:
        return self.role == UserRole.MODERATOR

    def __repr__(self):
        if self.is_service:
            return "<Principal service>"
        if not self.is_authenticated:
            return "<Principal anonymous>"
        return f"<Principal {self.id} role={self.role.value}>"
