"""
Project sharing forms.
"""
from flask_wtf import FlaskForm
from wtforms import SelectField, StringField
from wtforms.validators import DataRequired, Length

from rebath.models import PermissionType


class ShareProjectForm(FlaskForm):
    """Grant a user access to a project."""

    user_id = StringField(
        'User',
        validators=[DataRequired(message='user_id is required'), Length(max=36)]
    )

    permission_type = SelectField(
        'Permission',
        choices=[
            (PermissionType.VIEW.value, 'View'),
            (PermissionType.EDIT.value, 'Edit'),
            (PermissionType.ADMIN.value, 'Admin'),
        ],
        validators=[DataRequired(message='permission_type is required')],
        default=PermissionType.VIEW.value
    )
