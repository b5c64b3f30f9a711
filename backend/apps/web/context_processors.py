from django.conf import settings


def site(request):
    """Site name and the signed-in username for every template"""
    jwt_user = getattr(request, 'user_jwt', None)
    return {
        'site_name': settings.SITE_NAME,
        'site_url': settings.SITE_URL,
        'current_username': jwt_user['username'] if jwt_user else None,
    }
