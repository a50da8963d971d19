"""
Authentication forms.
"""
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Length, Optional

from rebath.services.auth_service import MIN_PASSWORD_LENGTH


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Length(max=255)])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required')])


class RegisterForm(FlaskForm):
    """Sign-up. The account waits for admin approval before it can log in."""

    email = StringField(
        'Email',
        validators=[
            DataRequired(message='Email is required'),
            Length(max=255)
        ]
    )
    password = PasswordField(
        'Password',
        validators=[
            DataRequired(message='Password is required'),
            Length(min=MIN_PASSWORD_LENGTH, message=f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        ]
    )
    full_name = StringField('Full name', validators=[Optional(), Length(max=200)])
