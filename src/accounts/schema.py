from ninja import ModelSchema

from accounts.models import CampusUser


class MinimalCampusUserSchema(ModelSchema):
    display_name: str

    class Meta:
        model = CampusUser
        fields = ["id", "username", "first_name", "last_name", "email"]
