from app.models.base import BaseModel
from app.extensions import db


class Category(BaseModel):
    """Category model"""
    __tablename__ = 'categories'

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    description = db.Column(db.Text)
    icon = db.Column(db.String(50))
    parent_id = db.Column(db.String(36), db.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    children = db.relationship('Category', backref=db.backref('parent', remote_side='Category.id'))
    listings = db.relationship('Listing', backref='category', lazy='dynamic')

    def to_nav_dict(self):
        return {'id': self.id, 'name': self.name, 'slug': self.slug, 'icon': self.icon}
