# Generated migration for stories app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authentication', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Tag',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tag', models.CharField(max_length=25, unique=True)),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('category', models.CharField(blank=True, default='', max_length=50)),
                ('privileged', models.BooleanField(default=False)),
                ('is_media', models.BooleanField(default=False)),
                ('inactive', models.BooleanField(default=False)),
                ('hotness_mod', models.FloatField(default=0.0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'tags',
                'ordering': ['tag'],
            },
        ),
        migrations.CreateModel(
            name='Story',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('short_id', models.CharField(max_length=6, unique=True)),
                ('title', models.CharField(max_length=150)),
                ('url', models.CharField(blank=True, max_length=500, null=True)),
                ('normalized_url', models.CharField(blank=True, db_index=True, default='', max_length=500)),
                ('domain', models.CharField(blank=True, db_index=True, default='', max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('markdown_description', models.TextField(blank=True, default='')),
                ('user_is_author', models.BooleanField(default=False)),
                ('score', models.IntegerField(default=0)),
                ('upvotes', models.PositiveIntegerField(default=0)),
                ('downvotes', models.PositiveIntegerField(default=0)),
                ('flags', models.PositiveIntegerField(default=0)),
                ('comments_count', models.PositiveIntegerField(default=0)),
                ('hotness', models.FloatField(default=0.0)),
                ('is_expired', models.BooleanField(default=False)),
                ('is_moderated', models.BooleanField(default=False)),
                ('is_deleted', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('merged_story', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='merged_stories', to='stories.story')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stories', to='authentication.user')),
            ],
            options={
                'db_table': 'stories',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Tagging',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('story', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='taggings', to='stories.story')),
                ('tag', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='taggings', to='stories.tag')),
            ],
            options={
                'db_table': 'taggings',
            },
        ),
        migrations.AddField(
            model_name='story',
            name='tags',
            field=models.ManyToManyField(related_name='stories', through='stories.Tagging', to='stories.tag'),
        ),
        migrations.CreateModel(
            name='SavedStory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('story', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saves', to='stories.story')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_stories', to='authentication.user')),
            ],
            options={
                'db_table': 'saved_stories',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='HiddenStory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('story', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='hides', to='stories.story')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='hidden_stories', to='authentication.user')),
            ],
            options={
                'db_table': 'hidden_stories',
            },
        ),
        migrations.AddIndex(
            model_name='story',
            index=models.Index(fields=['hotness'], name='stories_hotness_idx'),
        ),
        migrations.AddIndex(
            model_name='story',
            index=models.Index(fields=['score', 'created_at'], name='stories_score_idx'),
        ),
        migrations.AddIndex(
            model_name='story',
            index=models.Index(fields=['user', 'created_at'], name='stories_user_idx'),
        ),
        migrations.AddConstraint(
            model_name='tagging',
            constraint=models.UniqueConstraint(fields=('story', 'tag'), name='taggings_story_tag_uniq'),
        ),
        migrations.AddConstraint(
            model_name='savedstory',
            constraint=models.UniqueConstraint(fields=('user', 'story'), name='saved_stories_user_story_uniq'),
        ),
        migrations.AddConstraint(
            model_name='hiddenstory',
            constraint=models.UniqueConstraint(fields=('user', 'story'), name='hidden_stories_user_story_uniq'),
        ),
    ]
