from marshmallow import EXCLUDE, Schema, fields, pre_load, validates_schema, ValidationError


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class RegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(required=True)
    email = fields.Email(required=True)
    full_name = fields.String(required=True, data_key="fullName")
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _strip(data["email"])
        return data


class LoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(load_default=None)
    email = fields.String(load_default=None)
    password = fields.String(load_default=None, load_only=True)


class ChangePasswordSchema(Schema):
    old_password = fields.String(load_default=None, data_key="oldPassword")
    new_password = fields.String(load_default=None, data_key="newPassword")


class AccountUpdateSchema(Schema):
    full_name = fields.String(data_key="fullName")
    email = fields.Email()

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _strip(data["email"])
        return data

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("Provide fullName and/or email.")


class RefreshSchema(Schema):
    refresh_token = fields.String(load_default=None, data_key="refreshToken")


class UserOutSchema(Schema):
    """Public view of a user. password_hash and refresh_token have no field here."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    watch_history = fields.List(fields.String(), data_key="watchHistory")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class ChannelProfileSchema(Schema):
    full_name = fields.String(data_key="fullName")
    email = fields.String()
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    subscriber_count = fields.Integer(data_key="subscriberCount")
    subscribed_to_count = fields.Integer(data_key="subscribedToCount")
    is_subscribed = fields.Boolean(data_key="isSubscribed")
