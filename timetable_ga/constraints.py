# timetable_ga/constraints.py
from .model import CourseClass, Room, Teacher, TimeSlot


def time_slots_overlap(slot1: TimeSlot, slot2: TimeSlot) -> bool:
    return slot1.overlaps(slot2)


def teacher_available(teacher: Teacher, slot: TimeSlot) -> bool:
    # Disponibilidad por día, sin afinar por hora
    return slot.day in teacher.available


def room_fits(course: CourseClass, room: Room) -> bool:
    return course.capacity <= room.capacity


def teacher_qualified(teacher: Teacher, subject: str) -> bool:
    return subject in teacher.subjects
