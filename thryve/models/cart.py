from .. import db
from ..utils.dates import utcnow, isoformat


class CartItem(db.Model):
    __tablename__ = 'cart_items'

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey('carts.id', name='fk_cart_items_cart_id',
                                                  ondelete='CASCADE'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id', name='fk_cart_items_course_id'),
                          nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint('cart_id', 'course_id', name='uq_cart_items_cart_course'),
        db.CheckConstraint('quantity >= 1', name='ck_cart_items_quantity_positive'),
    )

    # Relationships
    cart = db.relationship('Cart', back_populates='items')
    course = db.relationship('Course', lazy='joined')

    @property
    def subtotal(self):
        return self.course.price * self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'cartId': self.cart_id,
            'courseId': self.course_id,
            'quantity': self.quantity,
            'course': self.course.to_dict() if self.course else None,
        }


class Cart(db.Model):
    __tablename__ = 'carts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', name='fk_carts_user_id'),
                        nullable=False, unique=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = db.relationship('User', back_populates='shopping_cart')
    items = db.relationship('CartItem', back_populates='cart', lazy=True,
                            cascade='all, delete-orphan', passive_deletes=True,
                            order_by='CartItem.id')

    def find_item(self, course_id):
        return CartItem.query.filter_by(cart_id=self.id, course_id=course_id).first()

    @property
    def course_ids(self):
        return [item.course_id for item in self.items]

    @property
    def total(self):
        """Calculate the total price of all items in the cart"""
        return sum(item.subtotal for item in self.items)

    @property
    def count(self):
        return sum(item.quantity for item in self.items)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }
