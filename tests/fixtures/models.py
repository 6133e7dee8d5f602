"""
Example models used across the test suite
"""
from pyorm import Model, BelongsTo, HasMany, HasOne


class User(Model):
    table = 'users'
    fillable = ('name', 'email', 'password', 'status', 'age', 'created_at', 'updated_at')
    hidden = ('password',)

    posts = HasMany('Post')
    profile = HasOne('UserProfile')

    @classmethod
    def active(cls):
        return cls.where('status', 'active')

    @classmethod
    def older_than(cls, age: int):
        return cls.where('age', '>', age)


class Post(Model):
    table = 'posts'
    fillable = ('title', 'content', 'user_id', 'status', 'published_at', 'created_at', 'updated_at')

    user = BelongsTo('User')
    comments = HasMany('Comment')

    @classmethod
    def published(cls):
        return cls.where('status', 'published')


class Comment(Model):
    table = 'comments'
    fillable = ('content', 'post_id', 'user_id', 'created_at', 'updated_at')

    post = BelongsTo(Post)
    user = BelongsTo(User)


class UserProfile(Model):
    table = 'user_profiles'
    fillable = ('user_id', 'bio', 'avatar', 'website', 'location', 'created_at', 'updated_at')

    user = BelongsTo(User)


ALL_MODELS = (User, Post, Comment, UserProfile)
