"""
Django admin configuration for catalog_engine.
"""
from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import Category, Post, PostCategory, StoredImage
from .storage import get_media_storage


class PostCategoryInline(admin.TabularInline):
    """Inline for managing category associations on posts."""

    model = PostCategory
    extra = 1
    autocomplete_fields = ["category"]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "post_count", "created_at"]
    search_fields = ["name"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["title_preview", "cover_image_key", "created_at", "updated_at"]
    list_filter = ["categories", "created_at"]
    search_fields = ["title", "content"]
    date_hierarchy = "created_at"
    inlines = [PostCategoryInline]
    readonly_fields = ["created_at", "updated_at"]

    fieldsets = (
        (None, {
            "fields": ("title", "content", "cover_image_key")
        }),
        ("Metadata", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    def title_preview(self, obj):
        """Truncated title for list display."""
        return obj.title[:60] + "..." if len(obj.title) > 60 else obj.title

    title_preview.short_description = "Title"

    def save_model(self, request, obj, form, change):
        if change:
            obj.updated_at = timezone.now()
        super().save_model(request, obj, form, change)


@admin.register(StoredImage)
class StoredImageAdmin(admin.ModelAdmin):
    list_display = [
        "thumbnail_preview",
        "storage_key",
        "mime_type",
        "human_file_size",
        "dimensions",
        "created_at",
    ]
    list_filter = ["mime_type", "created_at"]
    search_fields = ["storage_key", "content_hash"]
    readonly_fields = [
        "content_hash",
        "storage_key",
        "file_size",
        "width",
        "height",
        "mime_type",
        "created_at",
    ]

    def has_add_permission(self, request):
        # Rows are only written by the media store.
        return False

    def thumbnail_preview(self, obj):
        return format_html(
            '<img src="{}" style="max-width: 50px; max-height: 50px;" />',
            get_media_storage().url(obj.storage_key),
        )

    thumbnail_preview.short_description = "Preview"

    def dimensions(self, obj):
        if obj.width and obj.height:
            return f"{obj.width}x{obj.height}"
        return "-"

    dimensions.short_description = "Size"
