"""
JSON views for django-catalog-engine.

Reads are public. Admin mutations read the ``Authorization`` header and hand
it to the service, which authorizes before touching the catalog.
"""
import json
import logging

from django.apps import apps
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .exceptions import CatalogError, ValidationError
from .forms import CategoryForm, CoverImageForm, PostForm

logger = logging.getLogger(__name__)


def serialize_category(category):
    return {"id": category.pk, "name": category.name}


def serialize_post(post):
    return {
        "id": post.pk,
        "title": post.title,
        "content": post.content,
        "coverImageKey": post.cover_image_key,
        "createdAt": post.created_at,
        "updatedAt": post.updated_at,
        "categories": [serialize_category(category) for category in post.category_list],
    }


@method_decorator(csrf_exempt, name="dispatch")
class CatalogAPIView(View):
    """Base view: service lookup, JSON parsing and error mapping."""

    service = None

    def get_service(self):
        if self.service is not None:
            return self.service
        return apps.get_app_config("catalog_engine").service

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except CatalogError as exc:
            if exc.status_code >= 500:
                logger.warning("%s %s failed: %s", request.method, request.path, exc.message)
            return JsonResponse(exc.as_dict(), status=exc.status_code)

    @property
    def credential(self):
        return self.request.headers.get("Authorization")

    def read_json(self):
        try:
            payload = json.loads(self.request.body or b"{}")
        except (ValueError, UnicodeDecodeError):
            raise ValidationError("Request body must be valid JSON") from None
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload

    def clean(self, form):
        if not form.is_valid():
            if hasattr(form, "json_errors"):
                fields = form.json_errors()
            else:
                fields = {name: list(errors) for name, errors in form.errors.items()}
            raise ValidationError("Invalid request", fields=fields)
        return form.cleaned_data


class PostListView(CatalogAPIView):
    """List posts, newest first."""

    def get(self, request):
        posts = self.get_service().list_posts()
        return JsonResponse([serialize_post(post) for post in posts], safe=False)


class PostDetailView(CatalogAPIView):
    """Display a single post."""

    def get(self, request, pk):
        return JsonResponse(serialize_post(self.get_service().get_post(pk)))


class CategoryListView(CatalogAPIView):
    """List categories."""

    def get(self, request):
        categories = self.get_service().list_categories()
        return JsonResponse(
            [
                {
                    **serialize_category(category),
                    "createdAt": category.created_at,
                    "updatedAt": category.updated_at,
                }
                for category in categories
            ],
            safe=False,
        )


class AdminPostListView(PostListView):
    """List posts or create a new one."""

    def post(self, request):
        data = self.clean(PostForm.from_json(self.read_json()))
        post = self.get_service().create_post(
            self.credential,
            title=data["title"],
            content=data["content"],
            cover_image_key=data["cover_image_key"],
            category_ids=data["category_ids"],
        )
        return JsonResponse(serialize_post(post), status=201)


class AdminPostDetailView(PostDetailView):
    """Read, replace or delete a post."""

    def put(self, request, pk):
        data = self.clean(PostForm.from_json(self.read_json()))
        post = self.get_service().update_post(
            self.credential,
            pk,
            title=data["title"],
            content=data["content"],
            cover_image_key=data["cover_image_key"],
            category_ids=data["category_ids"],
        )
        return JsonResponse(serialize_post(post))

    def delete(self, request, pk):
        self.get_service().delete_post(self.credential, pk)
        return JsonResponse({"msg": "Post deleted"})


class AdminCategoryListView(CategoryListView):
    """List categories or create a new one."""

    def post(self, request):
        data = self.clean(CategoryForm.from_json(self.read_json()))
        category = self.get_service().create_category(self.credential, data["name"])
        return JsonResponse(serialize_category(category), status=201)


class AdminCategoryDetailView(CatalogAPIView):
    """Delete a category; its posts are kept."""

    def delete(self, request, pk):
        self.get_service().delete_category(self.credential, pk)
        return JsonResponse({"msg": "Category deleted"})


class CoverImageUploadView(CatalogAPIView):
    """Upload a cover image and return its content-derived key."""

    def post(self, request):
        data = self.clean(CoverImageForm(request.POST, request.FILES))
        key, url = self.get_service().upload_cover_image(self.credential, data["file"])
        return JsonResponse({"key": key, "url": url}, status=201)


class CoverImageURLView(CatalogAPIView):
    """Resolve an image key to its public URL."""

    def get(self, request):
        key = request.GET.get("key", "")
        verify = request.GET.get("verify") in ("1", "true")
        url = self.get_service().cover_image_url(key, verify=verify)
        return JsonResponse({"key": key, "url": url})
