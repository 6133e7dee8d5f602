"""
Unit tests for the Model base class
"""
import json

import pytest

from pyorm import (
    AttributeNotFoundError, BelongsTo, ConfigurationError, HasMany, Model, ModelMeta, QueryBuilder
)
from fixtures.models import Comment, Post, User, UserProfile


class Widget(Model):
    """Model relying on the default table name"""
    fillable = ('name', 'size')


class Category(Model):
    table = 'taxonomy'
    foreign_key = 'taxonomy_id'


class Loose(Model):
    """Model with no fillable restriction"""
    table = 'loose'
    hidden = ('secret',)


@pytest.mark.unit
class TestModelDeclaration:
    """Test class-level configuration"""

    def test_default_table_name(self):
        """Test naive pluralization of the class name"""
        assert Widget.table == 'widgets'
        assert UserProfile.default_table_name() == 'userprofiles'

    def test_declared_table_name_wins(self):
        """Test an explicit table is kept"""
        assert Category.table == 'taxonomy'
        assert UserProfile.table == 'user_profiles'

    def test_foreign_key_name(self):
        """Test inferred and declared foreign key columns"""
        assert User.foreign_key_name() == 'user_id'
        assert UserProfile.foreign_key_name() == 'userprofile_id'
        assert Category.foreign_key_name() == 'taxonomy_id'

    def test_primary_key_default(self):
        """Test the primary key defaults to id"""
        assert Widget.primary_key == 'id'

    def test_relationships_collected(self):
        """Test descriptors are gathered by the metaclass"""
        relationships = User.get_relationships()
        assert set(relationships) == {'posts', 'profile'}
        assert isinstance(relationships['posts'], HasMany)
        assert isinstance(Comment.get_relationships()['post'], BelongsTo)

    def test_registry_resolves_names(self):
        """Test models are registered by class name"""
        assert ModelMeta.resolve('Post') is Post
        assert ModelMeta.resolve(Post) is Post

    def test_registry_unknown_name(self):
        """Test unknown model names fail loudly"""
        with pytest.raises(ConfigurationError):
            ModelMeta.resolve('NoSuchModel')

    def test_abstract_base_not_registered(self):
        """Test the base class gets no table"""
        assert Model.table is None
        with pytest.raises(ConfigurationError):
            ModelMeta.resolve('Model')

    def test_unbound_model_raises(self):
        """Test querying without a bound connection"""
        with pytest.raises(ConfigurationError):
            Widget.find(1)

    def test_query_builder_is_model_bound(self, db):
        """Test query() returns a builder scoped to the model"""
        builder = User.query()
        assert isinstance(builder, QueryBuilder)
        assert builder.get_table() == 'users'
        assert builder.model_class is User
        assert builder.connection is db


@pytest.mark.unit
class TestAttributes:
    """Test attribute map, fill and serialization"""

    def test_fill_respects_fillable(self):
        """Test non-fillable keys are silently dropped"""
        widget = Widget({'name': 'bolt', 'size': 3, 'owner': 'me'})
        assert widget.attributes == {'name': 'bolt', 'size': 3}

    def test_fill_unrestricted_when_fillable_empty(self):
        """Test an empty fillable set allows everything"""
        loose = Loose(anything=1, secret='s')
        assert loose.attributes == {'anything': 1, 'secret': 's'}

    def test_fill_chains(self):
        """Test fill returns the instance"""
        widget = Widget()
        assert widget.fill({'name': 'nut'}) is widget
        assert widget.name == 'nut'

    def test_get_attribute_unknown_raises(self):
        """Test reading an unset attribute is explicit"""
        widget = Widget(name='bolt')
        with pytest.raises(AttributeNotFoundError) as exc_info:
            widget.get_attribute('size')
        assert exc_info.value.key == 'size'
        assert isinstance(exc_info.value, KeyError)
        assert widget.get_attribute('size', None) is None

    def test_attribute_sugar(self):
        """Test dotted access reads and writes the attribute map"""
        widget = Widget(name='bolt')
        widget.size = 7
        assert widget.get_attribute('size') == 7
        assert widget.size == 7
        with pytest.raises(AttributeError):
            widget.colour
        del widget.size
        assert not widget.has_attribute('size')

    def test_set_attribute_bypasses_fillable(self):
        """Test direct assignment is not filtered"""
        widget = Widget()
        widget.set_attribute('owner', 'me')
        assert widget.owner == 'me'

    def test_class_config_cannot_be_shadowed(self):
        """Test assigning a name like hidden leaves the model config intact"""
        loose = Loose(title='x', secret='s')
        with pytest.raises(AttributeError, match="set_attribute"):
            loose.hidden = True
        with pytest.raises(AttributeError):
            loose.save = 'later'

        loose.set_attribute('hidden', True)
        assert loose.get_attribute('hidden') is True
        assert Loose.hidden == ('secret',)
        assert loose.to_dict() == {'title': 'x', 'hidden': True}
        assert 'secret' not in repr(loose)

    def test_relationship_is_read_only(self):
        """Test assigning to a relationship name fails"""
        post = Post(title='Hello')
        with pytest.raises(AttributeError):
            post.user = User(name='x')

    def test_to_dict_excludes_hidden(self):
        """Test hidden columns never serialize"""
        user = User(name='John Doe', email='john@example.com', password='secret')
        assert user.to_dict() == {'name': 'John Doe', 'email': 'john@example.com'}
        assert 'password' not in json.loads(user.to_json())
        assert 'secret' not in str(user)
        assert 'secret' not in repr(user)

    def test_to_json_handles_non_json_types(self):
        """Test values without a JSON form are stringified"""
        from datetime import date
        loose = Loose(day=date(2024, 1, 2))
        assert json.loads(loose.to_json()) == {'day': '2024-01-02'}

    def test_new_instance_state(self):
        """Test a constructed instance is new and dirty"""
        user = User(name='A')
        assert user.persisted is False
        assert user.original == {}
        assert user.get_dirty() == {'name': 'A'}

    def test_persisted_is_read_only(self):
        """Test the persisted flag cannot be assigned"""
        user = User(name='A')
        with pytest.raises(AttributeError):
            user.persisted = True


@pytest.mark.unit
class TestDirtyTracking:
    """Test the dirty attribute diff"""

    def test_hydrated_instance_is_clean(self):
        """Test a loaded row starts with no changes"""
        user = User.new_from_row({'id': 1, 'name': 'A', 'age': 3})
        assert user.persisted is True
        assert user.is_dirty() is False
        assert user.get_dirty() == {}

    def test_changed_and_new_keys_are_dirty(self):
        """Test value changes and newly set keys are both dirty"""
        user = User.new_from_row({'id': 1, 'name': 'A', 'age': 3})
        user.age = 4
        user.email = 'a@example.com'
        assert user.get_dirty() == {'age': 4, 'email': 'a@example.com'}
        assert user.is_dirty('age') is True
        assert user.is_dirty('name') is False

    def test_non_fillable_changes_are_ignored(self):
        """Test dirty only reports fillable keys"""
        user = User.new_from_row({'id': 1, 'name': 'A'})
        user.set_attribute('role', 'admin')
        user.set_attribute('id', 2)
        assert user.get_dirty() == {}

    def test_restoring_value_clears_dirty(self):
        """Test dirty compares values, not history"""
        user = User.new_from_row({'id': 1, 'name': 'A'})
        user.name = 'B'
        user.name = 'A'
        assert user.is_dirty() is False
