"""
Django management command to load sample projects, blog posts and testimonials
"""
import json
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from pydantic import ValidationError as SchemaValidationError

from authentication.models import User
from content.models import BlogPost, Testimonial
from content.schemas import BlogPostCreateSchema, TestimonialCreateSchema
from projects.models import Project
from projects.schemas import ProjectCreateSchema
from services.storage import get_storage


class Command(BaseCommand):
    help = 'Loads seed content from data/seed.json; existing slugs are left untouched'

    def add_arguments(self, parser):
        parser.add_argument(
            '--file',
            default=str(Path(settings.BASE_DIR) / 'data' / 'seed.json'),
            help='Seed file to load',
        )

    def handle(self, *args, **options):
        seed_path = Path(options['file'])
        if not seed_path.exists():
            raise CommandError(f'Seed file not found at {seed_path}')

        with open(seed_path, 'r', encoding='utf-8') as f:
            seed = json.load(f)

        author = User.objects.filter(role=User.ROLE_ADMIN).order_by('created_at').first()

        try:
            with transaction.atomic():
                projects = self._seed_projects(seed.get('projects', []))
                posts = self._seed_blog_posts(seed.get('blog_posts', []), author)
                testimonials = self._seed_testimonials(seed.get('testimonials', []))
        except SchemaValidationError as e:
            raise CommandError(f'Invalid seed data: {e}')

        self.stdout.write(self.style.SUCCESS(
            f'✓ Seed complete: {projects} projects, {posts} blog posts, {testimonials} testimonials created'
        ))

    def _seed_projects(self, items) -> int:
        created = 0
        for item in items:
            data = ProjectCreateSchema.model_validate(item)
            if Project.objects.filter(slug=data.slug).exists():
                self.stdout.write(self.style.NOTICE(f'  Project exists, skipped: {data.slug}'))
                continue
            get_storage().create_project(data)
            created += 1
        return created

    def _seed_blog_posts(self, items, author) -> int:
        created = 0
        for item in items:
            data = BlogPostCreateSchema.model_validate(item)
            if BlogPost.objects.filter(slug=data.slug).exists():
                self.stdout.write(self.style.NOTICE(f'  Blog post exists, skipped: {data.slug}'))
                continue
            get_storage().create_blog_post(data, author=author)
            created += 1
        return created

    def _seed_testimonials(self, items) -> int:
        created = 0
        for item in items:
            item = dict(item)
            project_slug = item.pop('project_slug', None)
            if project_slug:
                project = Project.objects.filter(slug=project_slug).first()
                item['project_id'] = project.id if project else None
            data = TestimonialCreateSchema.model_validate(item)
            if Testimonial.objects.filter(name=data.name, content=data.content).exists():
                continue
            get_storage().create_testimonial(data)
            created += 1
        return created
