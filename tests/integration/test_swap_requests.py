"""
Integration tests for the swap request workflow.

Tests cover:
- Creating a request notifies the schedule creator or team leader
- approve / reject state machine and terminal states
- Optional conflict re-check on approval
"""
import pytest
import json


@pytest.fixture
def pending_swap(user_factory, team_factory, role_factory, schedule_factory,
                 detail_factory, swap_request_factory):
    """Requester holds a Vocals slot and proposes a replacement."""
    leader = user_factory(role='leader', name='Lead')
    requester = user_factory(name='Requester')
    replacement = user_factory(name='Replacement')
    team = team_factory(leader_id=leader.id)
    vocals = role_factory(team=team, name='Vocals')
    schedule = schedule_factory(team=team)
    detail = detail_factory(schedule=schedule, role=vocals, volunteer=requester)
    swap = swap_request_factory(detail=detail, requester=requester, replacement=replacement)
    return {
        'leader': leader, 'requester': requester, 'replacement': replacement,
        'team': team, 'schedule': schedule, 'detail': detail, 'swap': swap,
    }


class TestCreateSwapRequest:

    @pytest.mark.integration
    def test_create_notifies_team_leader(self, client, user_factory, team_factory,
                                         schedule_factory, detail_factory):
        leader = user_factory(role='leader')
        requester = user_factory()
        team = team_factory(leader_id=leader.id)
        detail = detail_factory(schedule=schedule_factory(team=team), volunteer=requester)

        response = client.post('/api/swap-requests', json={
            'requesterId': requester.id,
            'scheduleDetailId': detail.id,
            'reason': 'Family visit',
        })

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['status'] == 'pending'
        assert data['scheduleId'] == detail.schedule_id

        notifications = client.get(f'/api/users/{leader.id}/notifications').get_json()
        assert len(notifications) == 1
        assert notifications[0]['type'] == 'swap_request'
        assert notifications[0]['relatedId'] == data['id']

    @pytest.mark.integration
    def test_create_prefers_schedule_creator(self, client, user_factory, team_factory,
                                             schedule_factory, detail_factory):
        leader = user_factory(role='leader')
        creator = user_factory(role='admin')
        requester = user_factory()
        team = team_factory(leader_id=leader.id)
        schedule = schedule_factory(team=team, created_by=creator.id)
        detail = detail_factory(schedule=schedule, volunteer=requester)

        response = client.post('/api/swap-requests', json={
            'requesterId': requester.id, 'scheduleDetailId': detail.id,
        })

        assert response.status_code == 201
        assert len(client.get(f'/api/users/{creator.id}/notifications').get_json()) == 1
        assert client.get(f'/api/users/{leader.id}/notifications').get_json() == []

    @pytest.mark.integration
    def test_create_validates_references(self, client):
        response = client.post('/api/swap-requests', json={'requesterId': 1, 'scheduleDetailId': 2})

        assert response.status_code == 400
        fields = {e['field'] for e in response.get_json()['errors']}
        assert fields == {'requesterId', 'scheduleDetailId'}


class TestResolveSwapRequest:

    @pytest.mark.integration
    def test_approve_hands_slot_to_replacement(self, client, models, db, pending_swap):
        swap, detail = pending_swap['swap'], pending_swap['detail']

        response = client.put(f'/api/swap-requests/{swap.id}', json={
            'status': 'approved', 'resolvedBy': pending_swap['leader'].id,
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'approved'
        assert data['resolvedBy'] == pending_swap['leader'].id
        assert data['resolvedAt'] is not None

        db.session.refresh(detail)
        assert detail.volunteer_id == pending_swap['replacement'].id

    @pytest.mark.integration
    def test_reject_leaves_slot_untouched(self, client, db, pending_swap):
        swap, detail = pending_swap['swap'], pending_swap['detail']

        response = client.patch(f'/api/swap-requests/{swap.id}', json={'status': 'rejected'})

        assert response.status_code == 200
        assert response.get_json()['status'] == 'rejected'
        db.session.refresh(detail)
        assert detail.volunteer_id == pending_swap['requester'].id

    @pytest.mark.integration
    def test_requester_is_notified_of_outcome(self, client, pending_swap):
        swap, requester = pending_swap['swap'], pending_swap['requester']

        client.put(f'/api/swap-requests/{swap.id}', json={'status': 'rejected'})

        unread = client.get(f'/api/users/{requester.id}/unread-notifications').get_json()
        assert [n['title'] for n in unread] == ['Swap request rejected']

    @pytest.mark.integration
    @pytest.mark.parametrize('first, second', [
        ('approved', 'rejected'),
        ('rejected', 'approved'),
        ('approved', 'approved'),
    ])
    def test_resolved_request_is_terminal(self, client, db, pending_swap, first, second):
        swap, detail = pending_swap['swap'], pending_swap['detail']
        assert client.put(f'/api/swap-requests/{swap.id}', json={'status': first}).status_code == 200
        db.session.refresh(detail)
        volunteer_after_first = detail.volunteer_id

        response = client.put(f'/api/swap-requests/{swap.id}', json={'status': second})

        assert response.status_code == 409
        assert response.get_json()['currentStatus'] == first
        db.session.refresh(detail)
        assert detail.volunteer_id == volunteer_after_first

    @pytest.mark.integration
    def test_editing_resolved_request_is_409(self, client, pending_swap):
        swap = pending_swap['swap']
        client.put(f'/api/swap-requests/{swap.id}', json={'status': 'rejected'})

        response = client.patch(f'/api/swap-requests/{swap.id}', json={'reason': 'changed my mind'})

        assert response.status_code == 409

    @pytest.mark.integration
    def test_invalid_status_is_400(self, client, pending_swap):
        response = client.put(f"/api/swap-requests/{pending_swap['swap'].id}", json={'status': 'maybe'})
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['field'] == 'status'

    @pytest.mark.integration
    def test_unknown_request_is_404(self, client):
        assert client.put('/api/swap-requests/999', json={'status': 'approved'}).status_code == 404

    @pytest.mark.integration
    def test_approve_without_replacement_keeps_volunteer(self, client, db, swap_request_factory, user_factory,
                                                          detail_factory):
        requester = user_factory()
        detail = detail_factory(volunteer=requester)
        swap = swap_request_factory(detail=detail, requester=requester)

        assert client.put(f'/api/swap-requests/{swap.id}', json={'status': 'approved'}).status_code == 200
        db.session.refresh(detail)
        assert detail.volunteer_id == requester.id


class TestSwapApprovalConflictCheck:

    @pytest.fixture
    def busy_replacement(self, pending_swap, schedule_factory, event_factory, role_factory, detail_factory):
        """The replacement already serves elsewhere at the same occurrence."""
        schedule = pending_swap['schedule']
        other_event = event_factory(date=schedule.event.date, location=schedule.event.location)
        other = schedule_factory(event=other_event)
        detail_factory(schedule=other, role=role_factory(team=other.team), volunteer=pending_swap['replacement'])
        return pending_swap

    @pytest.mark.integration
    def test_approval_double_books_when_check_disabled(self, client, busy_replacement):
        swap = busy_replacement['swap']

        response = client.put(f'/api/swap-requests/{swap.id}', json={'status': 'approved'})

        assert response.status_code == 200
        assert len(client.get('/api/conflicts').get_json()) == 1

    @pytest.mark.integration
    def test_approval_rejected_when_check_enabled(self, client, db, config_override, busy_replacement):
        config_override(SWAP_APPROVAL_CHECKS_CONFLICTS=True)
        swap, detail = busy_replacement['swap'], busy_replacement['detail']

        response = client.put(f'/api/swap-requests/{swap.id}', json={'status': 'approved'})

        assert response.status_code == 409
        assert 'conflict' in response.get_json()
        assert client.get(f'/api/swap-requests/{swap.id}').get_json()['status'] == 'pending'
        db.session.refresh(detail)
        assert detail.volunteer_id == busy_replacement['requester'].id


class TestListSwapRequests:

    @pytest.mark.integration
    def test_filters(self, client, user_factory, swap_request_factory):
        alice = user_factory()
        swap_request_factory(requester=alice)
        swap_request_factory(requester=alice, status='rejected')
        swap_request_factory()

        assert len(client.get('/api/swap-requests').get_json()) == 3
        assert len(client.get(f'/api/swap-requests?requesterId={alice.id}').get_json()) == 2
        assert len(client.get(f'/api/swap-requests?requesterId={alice.id}&status=pending').get_json()) == 1
