"""
Tests for duplicate detection, content analysis and story recommendations.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.intelligence.services import (
    content_categorization_service,
    duplicate_detection_service,
    recommendation_service,
)
from apps.intelligence.services.categorization import (
    ADVICE_DUPLICATE,
    ADVICE_TAGS,
    count_syllables,
    readability,
)
from apps.intelligence.services.duplicates import RECOMMEND_MERGE
from apps.intelligence.services.recommendations import NOT_RECOMMENDED
from apps.stories.models import Story
from apps.votes.services import vote_service


@pytest.mark.django_db
class TestDuplicateDetection:

    def test_exact_url(self, user, make_story):
        story = make_story(user, url='https://example.com/posts/rust-2')

        result = duplicate_detection_service.check_duplicates({
            'title': 'Something else entirely',
            'url': 'http://www.example.com/posts/rust-2/?utm_source=feed',
        })

        assert result['is_duplicate'] is True
        assert result['duplicate_type'] == 'exact_url'
        assert result['similarity_score'] == 1.0
        assert [d['short_id'] for d in result['exact_duplicates']] == [story.short_id]
        assert result['recommendations'] == [RECOMMEND_MERGE]

    def test_url_variant(self, user, make_story):
        story = make_story(user, url='https://example.com/articles/1')

        result = duplicate_detection_service.check_duplicates({'url': 'https://example.com/articles/12'})

        assert result['duplicate_type'] == 'url_variant'
        assert result['url_variants'][0]['short_id'] == story.short_id
        assert result['similarity_score'] > 0.8

    def test_same_title(self, user, make_story):
        story = make_story(user, title='Rust 2.0 released with async traits', url='https://blog.example.net/rust-2')

        result = duplicate_detection_service.check_duplicates({'title': 'Rust 2.0 released with async traits'})

        assert result['is_duplicate'] is True
        assert result['duplicate_type'] == 'content_similarity'
        best = result['similar_content'][0]
        assert best['short_id'] == story.short_id
        assert 'Very similar title' in best['match_reasons']
        assert best['total_similarity'] == pytest.approx(0.9, abs=1e-6)

    def test_unrelated_submission(self, user, make_story):
        make_story(user, title='Rust 2.0 released with async traits')

        result = duplicate_detection_service.check_duplicates({
            'title': 'Gardening for beginners', 'url': 'https://garden.example.org/start',
        })

        assert result['is_duplicate'] is False
        assert result['duplicate_type'] is None
        assert result['similar_content'] == []
        assert result['recommendations'] == []
        assert set(result['content_fingerprint']) == {'title_hash', 'content_hash', 'url_hash', 'combined_hash'}

    def test_exclude_own_story(self, user, make_story):
        story = make_story(user, url='https://example.com/posts/rust-2')

        result = duplicate_detection_service.check_duplicates(
            {'url': 'https://example.com/posts/rust-2'}, exclude_id=story.id
        )

        assert result['is_duplicate'] is False

    def test_deleted_stories_do_not_count(self, user, make_story):
        story = make_story(user, url='https://example.com/posts/rust-2')
        Story.objects.filter(id=story.id).update(is_deleted=True)

        result = duplicate_detection_service.check_duplicates({'url': 'https://example.com/posts/rust-2'})

        assert result['is_duplicate'] is False

    def test_similar_stories(self, user, make_story):
        original = make_story(user, title='Rust compiler performance improvements')
        follow_up = make_story(user, title='Rust compiler performance improvements announced')
        make_story(user, title='Gardening for beginners')

        similar = duplicate_detection_service.find_similar_stories(original)

        assert [item['short_id'] for item in similar] == [follow_up.short_id]


@pytest.mark.django_db
class TestDuplicateApi:

    def test_check(self, api_client, user, make_story):
        story = make_story(user, url='https://example.com/posts/rust-2')

        response = api_client.post('/api/v1/intelligence/duplicates', {
            'url': 'https://example.com/posts/rust-2',
        }, format='json')

        assert response.status_code == 200
        assert response.json()['exact_duplicates'][0]['short_id'] == story.short_id

        excluded = api_client.post('/api/v1/intelligence/duplicates', {
            'url': 'https://example.com/posts/rust-2', 'exclude': story.short_id,
        }, format='json')
        assert excluded.json()['is_duplicate'] is False

    def test_requires_some_content(self, api_client, db):
        response = api_client.post('/api/v1/intelligence/duplicates', {'title': '  '}, format='json')
        assert response.status_code == 400

    def test_similar_endpoint(self, api_client, user, make_story):
        original = make_story(user, title='Rust compiler performance improvements')
        follow_up = make_story(user, title='Rust compiler performance improvements announced')

        body = api_client.get(f'/api/v1/intelligence/stories/{original.short_id}/similar').json()

        assert body['story'] == original.short_id
        assert [item['short_id'] for item in body['similar']] == [follow_up.short_id]


@pytest.mark.django_db
class TestRankingSteps:

    def test_trending_score(self, user, make_story):
        story = make_story(user)
        Story.objects.filter(id=story.id).update(score=3, comments_count=1)
        story.refresh_from_db()

        assert recommendation_service.trending_score(story, now=story.created_at) == pytest.approx(
            6.0 / 2 ** 1.8
        )
        assert recommendation_service.trending_score(story, now=story.created_at + timedelta(days=8)) == 0.0

    def test_hybrid_rank_normalizes_each_algorithm(self):
        combined = recommendation_service.hybrid_rank({
            'collaborative': {1: {'score': 2.0, 'reasons': ['a']}, 2: {'score': 1.0, 'reasons': []}},
            'content_based': {},
            'trending': {2: {'score': 0.5, 'reasons': ['b']}},
        })

        assert combined[1]['total_score'] == pytest.approx(0.4)
        assert combined[2]['total_score'] == pytest.approx(0.4)
        assert combined[2]['algorithm_scores'] == {'collaborative': 1.0, 'trending': 0.5}
        assert combined[2]['reasons'] == ['b']

    def test_diversity_penalizes_repeated_domains(self, user, make_story):
        stories = [make_story(user) for _ in range(3)]
        entries = [
            {'story_id': story.id, 'total_score': score, 'algorithm_scores': {}, 'reasons': []}
            for story, score in zip(stories, (3.0, 2.0, 1.0))
        ]

        ranked = recommendation_service.apply_diversity(entries, {story.id: story for story in stories})

        assert [entry['total_score'] for entry in ranked] == pytest.approx([3.0, 2.0, 0.7])

    def test_freshness_boost(self, user, make_story):
        story = make_story(user)
        entries = [{'story_id': story.id, 'total_score': 1.0, 'algorithm_scores': {}, 'reasons': []}]

        boosted = recommendation_service.apply_freshness(entries, {story.id: story})

        assert 1.29 < boosted[0]['total_score'] <= 1.3
        assert boosted[0]['reasons'] == ['Recently posted']


@pytest.mark.django_db
class TestRecommendations:

    @pytest.fixture
    def community(self, user, other_user, make_user, make_story):
        carol = make_user('carol')
        liked = make_story(user, title='Rust borrow checker explained', tags=['rust'])
        peer_pick = make_story(user, title='Gardening with kids', url='https://other.net/garden')
        same_tag = make_story(user, title='Async in practice', tags=['rust'])
        own_old = make_story(other_user, title='My ancient post', url='https://bob.example/old')
        Story.objects.filter(id=own_old.id).update(created_at=timezone.now() - timedelta(days=10))

        vote_service.vote_on_story(carol, liked, 1)
        vote_service.vote_on_story(carol, peer_pick, 1)
        vote_service.vote_on_story(other_user, liked, 1)
        return {'liked': liked, 'peer_pick': peer_pick, 'same_tag': same_tag, 'own_old': own_old}

    def test_personalized(self, client_for, other_user, community):
        body = client_for(other_user).get('/api/v1/intelligence/recommendations').json()

        assert body['personalized'] is True
        by_id = {item['short_id']: item['recommendation'] for item in body['recommendations']}
        assert 'Users similar to you liked this' in by_id[community['peer_pick'].short_id]['reasons']
        assert 'Tagged rust' in by_id[community['same_tag'].short_id]['reasons']
        assert community['own_old'].short_id not in by_id

    def test_explain(self, client_for, other_user, community):
        client = client_for(other_user)

        explained = client.get(
            f'/api/v1/intelligence/recommendations/{community["peer_pick"].short_id}/explain'
        ).json()
        not_recommended = client.get(
            f'/api/v1/intelligence/recommendations/{community["own_old"].short_id}/explain'
        ).json()

        assert explained['short_id'] == community['peer_pick'].short_id
        assert 'collaborative' in explained['algorithm_scores']
        assert not_recommended == {'explanation': NOT_RECOMMENDED}

    def test_explain_requires_login(self, api_client, community):
        response = api_client.get(f'/api/v1/intelligence/recommendations/{community["liked"].short_id}/explain')
        assert response.status_code == 401

    def test_general_for_anonymous(self, api_client, user, other_user, make_story):
        quiet = make_story(user, title='Quiet story')
        popular = make_story(user, title='Popular story')
        vote_service.vote_on_story(other_user, popular, 1)

        body = api_client.get('/api/v1/intelligence/recommendations').json()

        assert body['personalized'] is False
        ranked = [(item['short_id'], item['recommendation']['score']) for item in body['recommendations']]
        assert ranked == [(popular.short_id, 1.0), (quiet.short_id, 0.5)]
        assert body['recommendations'][0]['recommendation']['reasons'] == ['Popular in the community']


@pytest.mark.django_db
class TestSimilarityApi:

    def test_scores_and_interpretation(self, api_client):
        response = api_client.post('/api/v1/intelligence/similarity', {
            'content1': 'Rust ownership explained simply',
            'content2': 'Rust ownership explained simply',
            'title1': 'Rust ownership',
            'title2': 'Rust ownership',
            'url1': 'https://example.com/rust',
            'url2': 'http://www.example.com/rust/',
        }, format='json')

        assert response.status_code == 200
        assert response.json() == {
            'similarity': {'overall': 1.0, 'cosine': 1.0, 'jaccard': 1.0, 'title': 1.0, 'url': 1.0},
            'interpretation': 'Nearly identical',
        }

    def test_unrelated_texts(self, api_client):
        body = api_client.post('/api/v1/intelligence/similarity', {
            'content1': 'apples oranges bananas',
            'content2': 'kernel scheduler latency',
        }, format='json').json()

        assert set(body['similarity']) == {'overall', 'cosine', 'jaccard'}
        assert body['similarity']['cosine'] == 0.0
        assert body['interpretation'] == 'Different'

    def test_requires_both_texts(self, api_client):
        response = api_client.post('/api/v1/intelligence/similarity', {'content1': 'only one'}, format='json')
        assert response.status_code == 400


class TestContentAnalysis:

    def test_categories(self):
        categories = content_categorization_service.detect_categories(
            'Learning programming and writing code', 'https://github.com/example/repo'
        )
        assert categories == {'programming': {'score': 11, 'confidence': 0.55}}

    def test_suggested_tags_skip_existing(self):
        tags = content_categorization_service.suggest_tags('Rust rust rust and python', existing=['rust'])

        assert 'rust' not in tags
        assert 'and' not in tags
        assert tags['python']['score'] == pytest.approx(20.0)
        assert tags['python']['source'] == 'content'

    @pytest.mark.parametrize('text,sentiment', [
        ('This is a great and excellent library', 'positive'),
        ('An awful, terrible release', 'negative'),
        ('Plain release notes', 'neutral'),
    ])
    def test_sentiment(self, text, sentiment):
        assert content_categorization_service.analyze_sentiment(text)['sentiment'] == sentiment

    def test_technical_level(self):
        stack = 'python django docker kubernetes redis postgresql api graphql ' * 3
        assert content_categorization_service.technical_level('hello world') == 'beginner'
        assert content_categorization_service.technical_level(stack) == 'expert'

    def test_content_type(self):
        tutorial = content_categorization_service.detect_content_type({'title': 'How to write a tutorial guide'})
        plain = content_categorization_service.detect_content_type({'title': 'Random thoughts'})

        assert tutorial['primary'] == 'tutorial'
        assert plain == {'primary': 'article', 'all_scores': {}, 'confidence': 0.5}

    def test_quality_of_nothing(self):
        quality = content_categorization_service.calculate_quality({})
        assert quality['overall'] == 0.1
        assert quality['grade'] == 'F'

    def test_readability(self):
        assert readability('') == 0.0
        assert count_syllables('cat') == 1
        assert readability('The cat sat on the mat.') > readability(
            'Incomprehensibility characterizes institutionalized bureaucratization.'
        )


@pytest.mark.django_db
class TestAnalyzeApi:

    def test_analysis_shape(self, api_client):
        response = api_client.post('/api/v1/intelligence/analyze', {
            'title': 'How to write Python tests',
            'description': 'A step by step guide',
            'url': 'https://example.com/guide',
        }, format='json')

        assert response.status_code == 200
        body = response.json()
        assert body['analysis']['content_type']['primary'] == 'tutorial'
        assert 'python' in body['analysis']['suggested_tags']
        assert body['duplicate_check']['is_duplicate'] is False
        assert ADVICE_TAGS in body['recommendations']

    def test_flags_duplicates(self, api_client, user, make_story):
        make_story(user, url='https://example.com/posts/rust-2')

        body = api_client.post('/api/v1/intelligence/analyze', {
            'title': 'Rust 2 is here',
            'url': 'https://example.com/posts/rust-2',
        }, format='json').json()

        assert body['duplicate_check']['duplicate_type'] == 'exact_url'
        assert ADVICE_DUPLICATE in body['recommendations']

    def test_requires_title(self, api_client, db):
        response = api_client.post('/api/v1/intelligence/analyze', {'description': 'No title'}, format='json')
        assert response.status_code == 400
