# Generated migration for authentication app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('username', models.CharField(max_length=50, unique=True)),
                ('email', models.EmailField(max_length=255, unique=True)),
                ('password_hash', models.CharField(max_length=255)),
                ('is_admin', models.BooleanField(default=False)),
                ('is_moderator', models.BooleanField(default=False)),
                ('karma', models.IntegerField(default=1)),
                ('about', models.TextField(blank=True, default='')),
                ('homepage', models.CharField(blank=True, default='', max_length=255)),
                ('github_username', models.CharField(blank=True, default='', max_length=50)),
                ('twitter_username', models.CharField(blank=True, default='', max_length=50)),
                ('email_notifications', models.BooleanField(default=True)),
                ('pushover_notifications', models.BooleanField(default=False)),
                ('show_avatars', models.BooleanField(default=True)),
                ('show_story_previews', models.BooleanField(default=False)),
                ('show_read_ribbons', models.BooleanField(default=True)),
                ('hide_dragons', models.BooleanField(default=False)),
                ('allow_messages_from', models.CharField(choices=[('anyone', 'Anyone'), ('followed_users', 'Users I follow'), ('nobody', 'Nobody')], default='anyone', max_length=20)),
                ('filtered_tags', models.JSONField(blank=True, default=list)),
                ('favorite_tags', models.JSONField(blank=True, default=list)),
                ('banned_at', models.DateTimeField(blank=True, null=True)),
                ('banned_until', models.DateTimeField(blank=True, null=True)),
                ('banned_reason', models.TextField(blank=True, default='')),
                ('disabled_invites', models.BooleanField(default=False)),
                ('password_reset_token_hash', models.CharField(blank=True, default='', max_length=64)),
                ('password_reset_sent_at', models.DateTimeField(blank=True, null=True)),
                ('last_login_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('banned_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='authentication.user')),
                ('invited_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invitees', to='authentication.user')),
            ],
            options={
                'db_table': 'users',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='RefreshToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('token', models.CharField(max_length=500, unique=True)),
                ('expires_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('revoked_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='refresh_tokens', to='authentication.user')),
            ],
            options={
                'db_table': 'refresh_tokens',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['karma'], name='users_karma_idx'),
        ),
        migrations.AddIndex(
            model_name='refreshtoken',
            index=models.Index(fields=['user', 'revoked_at'], name='refresh_user_revoked_idx'),
        ),
    ]
